"""
API routes aggregation.
"""

from fastapi import APIRouter

from .access import router as access_router
from .locations import router as locations_router
from .outlooks import router as outlooks_router
from .records import router as records_router
from .users import router as users_router

router = APIRouter()

router.include_router(access_router, prefix="/access", tags=["access"])
router.include_router(locations_router, prefix="/locations", tags=["locations"])
router.include_router(outlooks_router, prefix="/project-outlooks", tags=["project-outlooks"])
router.include_router(records_router, prefix="/records", tags=["records"])
router.include_router(users_router, prefix="/users", tags=["users"])
