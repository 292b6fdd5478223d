"""API v1 router aggregator.

All v1 endpoint routers are included here under the /api/v1 prefix.
"""

from fastapi import APIRouter

from interntrack.api.v1 import analytics, applications

router = APIRouter()

# =============================================================================
# Core Resource Routers
# =============================================================================

router.include_router(
    applications.router, prefix="/applications", tags=["applications"]
)

# =============================================================================
# Reporting
# =============================================================================

router.include_router(analytics.router, prefix="/analytics", tags=["analytics"])
