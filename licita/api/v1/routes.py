from fastapi import APIRouter
from licita.api.v1.endpoints import auth, biddings, contracts, health, notifications, permissions, proposals, users

router = APIRouter(prefix="/v1")

router.include_router(auth.router, prefix="/auth", tags=["Auth"])
router.include_router(biddings.router, prefix="/biddings", tags=["Biddings"])
router.include_router(contracts.router, prefix="/contracts", tags=["Contracts"])
router.include_router(health.router, prefix="/health", tags=["Health"])
router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
router.include_router(permissions.router, prefix="/permissions", tags=["Permissions"])
router.include_router(proposals.router, prefix="/proposals", tags=["Proposals"])
router.include_router(users.router, prefix="/users", tags=["Users"])
