from typing import Any

from fastapi import APIRouter, Depends

from src.storefront.api.http.deps import get_stats_service
from src.storefront.core.services.admin import StatsService

router = APIRouter(tags=["admin-stats"])


@router.get("/stats")
def dashboard_stats(stats: StatsService = Depends(get_stats_service)) -> dict[str, Any]:
    return {"stats": stats.dashboard()}
