from fastapi import APIRouter

from .endpoints import (
    admin_applications,
    admin_campaigns,
    admin_chat,
    admin_creators,
    applications,
    creators,
    health,
    observability,
)

router = APIRouter()
router.include_router(health.router, tags=["Health"])
router.include_router(applications.router)
router.include_router(creators.router)
router.include_router(admin_applications.router)
router.include_router(admin_campaigns.router)
router.include_router(admin_creators.router)
router.include_router(admin_chat.router)
router.include_router(observability.router)
