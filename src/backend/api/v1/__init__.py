"""
API v1 router aggregating all endpoints.
"""

from fastapi import APIRouter, Depends

from api.deps import rate_limit_default
from api.v1.admin import router as admin_router
from api.v1.blog import router as blog_router
from api.v1.voting import router as voting_router

router = APIRouter(dependencies=[Depends(rate_limit_default)])

router.include_router(voting_router, prefix="/voting", tags=["Voting"])
router.include_router(blog_router, prefix="/blog", tags=["Blog"])
router.include_router(admin_router, prefix="/admin", tags=["Admin"])
