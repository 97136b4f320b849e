"""Email notifications via SendGrid."""

import html
import logging
from typing import Optional

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from app.core.config import Settings
from app.models.enterprise_inquiry import EnterpriseInquiry

logger = logging.getLogger(__name__)


class EmailService:
    """Thin SendGrid wrapper. Disabled (logs only) when no API key is set."""

    def __init__(self, settings: Settings):
        self.api_key = settings.SENDGRID_API_KEY
        self.from_email = settings.SENDGRID_FROM_EMAIL
        self.from_name = settings.SENDGRID_FROM_NAME
        self.enabled = bool(self.api_key)
        if not self.enabled:
            logger.warning("SENDGRID_API_KEY not configured. Emails will not be sent.")

    async def send_email(
        self,
        to: str,
        subject: str,
        html_body: str,
        plain_body: Optional[str] = None,
    ) -> bool:
        """Send an email. Returns True if SendGrid accepted it."""
        if not self.enabled:
            logger.info("Email service disabled. Would have sent to %s: %s", to, subject)
            return False

        message = Mail(
            from_email=(self.from_email, self.from_name),
            to_emails=to,
            subject=subject,
            html_content=html_body,
        )
        if plain_body:
            message.plain_text_content = plain_body

        try:
            response = SendGridAPIClient(self.api_key).send(message)
        except Exception as e:
            logger.error("Failed to send email to %s: %s", to, e)
            return False

        if response.status_code >= 400:
            logger.error("SendGrid rejected email to %s: %s %s", to, response.status_code, response.body)
            return False
        logger.info("Email sent to %s: %s", to, subject)
        return True

    async def send_enterprise_inquiry(self, to: str, inquiry: EnterpriseInquiry) -> bool:
        """Forward a contact-sales submission to the sales inbox."""
        fields = [
            ("Name", f"{inquiry.first_name} {inquiry.last_name}"),
            ("Email", inquiry.email),
            ("Phone", inquiry.phone),
            ("Company", inquiry.company_name),
            ("Locations", inquiry.num_locations),
            ("Estimated Calls", inquiry.estimated_calls),
            ("Current Solution", inquiry.current_solution or "N/A"),
            ("Message", inquiry.message or "No message provided"),
        ]
        rows = "".join(
            f"<p><strong>{label}:</strong> {html.escape(str(value))}</p>" for label, value in fields
        )
        return await self.send_email(
            to=to,
            subject=f"New Enterprise Inquiry from {inquiry.company_name}",
            html_body=f"<h2>New Enterprise Inquiry</h2>{rows}",
            plain_body="\n".join(f"{label}: {value}" for label, value in fields),
        )
