"""Create users, businesses, calls and enterprise_inquiries tables

Revision ID: 001
Revises:
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("email", sa.String, nullable=False),
        sa.Column("hashed_password", sa.String, nullable=False),
        sa.Column("full_name", sa.String, nullable=True),
        sa.Column("is_active", sa.Boolean, server_default=sa.text("true")),
        sa.Column("last_login_at", sa.DateTime, nullable=True),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "businesses",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("user_id", UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("business_name", sa.String, nullable=False),
        sa.Column("owner_name", sa.String, nullable=True),
        sa.Column("industry", sa.String, nullable=True),
        sa.Column("service_area", sa.String, nullable=True),
        sa.Column("services_offered", sa.JSON, nullable=False, server_default=sa.text("'[]'")),
        sa.Column("business_phone", sa.String, nullable=True),
        sa.Column("twilio_number", sa.String, nullable=True),
        sa.Column("notification_phone", sa.String, nullable=True),
        sa.Column("notification_email", sa.String, nullable=True),
        sa.Column("selected_plan", sa.String, server_default="professional"),
        sa.Column("stripe_customer_id", sa.String, unique=True, nullable=True),
        sa.Column("stripe_subscription_id", sa.String, nullable=True),
        sa.Column("subscription_status", sa.String, server_default="inactive"),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index("ix_businesses_user_id", "businesses", ["user_id"], unique=True)
    op.create_index("ix_businesses_twilio_number", "businesses", ["twilio_number"])

    op.create_table(
        "calls",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("business_id", UUID(as_uuid=True), sa.ForeignKey("businesses.id"), nullable=False),
        sa.Column("bland_call_id", sa.String, nullable=True),
        sa.Column("customer_name", sa.String, nullable=True),
        sa.Column("customer_phone", sa.String, nullable=True),
        sa.Column("customer_address", sa.String, nullable=True),
        sa.Column("service_needed", sa.String, nullable=True),
        sa.Column("urgency", sa.String, server_default="flexible"),
        sa.Column("call_status", sa.String, server_default="completed"),
        sa.Column("call_duration_seconds", sa.Integer, server_default="0"),
        sa.Column("call_transcript", sa.JSON, nullable=True),
        sa.Column("call_recording_url", sa.String, nullable=True),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index("ix_calls_business_id", "calls", ["business_id"])
    op.create_index("ix_calls_bland_call_id", "calls", ["bland_call_id"])

    op.create_table(
        "enterprise_inquiries",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("first_name", sa.String, nullable=False),
        sa.Column("last_name", sa.String, nullable=False),
        sa.Column("email", sa.String, nullable=False),
        sa.Column("phone", sa.String, nullable=False),
        sa.Column("company_name", sa.String, nullable=False),
        sa.Column("num_locations", sa.String, nullable=False),
        sa.Column("estimated_calls", sa.String, nullable=False),
        sa.Column("current_solution", sa.String, nullable=True),
        sa.Column("message", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("enterprise_inquiries")
    op.drop_index("ix_calls_bland_call_id", table_name="calls")
    op.drop_index("ix_calls_business_id", table_name="calls")
    op.drop_table("calls")
    op.drop_index("ix_businesses_twilio_number", table_name="businesses")
    op.drop_index("ix_businesses_user_id", table_name="businesses")
    op.drop_table("businesses")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
