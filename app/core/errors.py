"""Service-level errors and their JSON rendering.

Handlers raise a ``ServiceError`` and the app-wide exception handler turns it
into ``{"error": ..., "code": ...}`` with the error's HTTP status.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """Base error for a failed webhook/provisioning/billing operation."""

    status_code = 500
    code: str | None = None

    def __init__(self, message: str, status_code: int | None = None, code: str | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code


class BusinessNotFoundError(ServiceError):
    def __init__(self, message: str = "Business not found"):
        super().__init__(message)


class ProvisioningError(ServiceError):
    pass


class SubscriptionRequiredError(ProvisioningError):
    status_code = 402
    code = "BLAND_SUBSCRIPTION_REQUIRED"


class MissingPaymentMethodError(ProvisioningError):
    status_code = 402
    code = "BLAND_MISSING_PAYMENT_METHOD"


class SubscriptionError(ServiceError):
    pass


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    body = {"error": exc.message}
    if exc.code:
        body["code"] = exc.code
    logger.error("%s %s failed (%d): %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=body)
