from fastapi import APIRouter
from app.api.v1.endpoints import auth, billing, businesses, calls, enterprise, provisioning, webhooks

api_router = APIRouter()
api_router.include_router(webhooks.router, prefix="/webhooks", tags=["webhooks"])
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(businesses.router, prefix="/businesses", tags=["businesses"])
api_router.include_router(provisioning.router, prefix="/provisioning", tags=["provisioning"])
api_router.include_router(calls.router, prefix="/calls", tags=["calls"])
api_router.include_router(billing.router, prefix="/billing", tags=["billing"])
api_router.include_router(enterprise.router, prefix="/enterprise", tags=["enterprise"])
