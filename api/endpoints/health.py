# api/endpoints/health.py
from fastapi import APIRouter, Depends, Request
from datetime import datetime, timezone
import asyncio

from services.dependencies import get_service_manager

router = APIRouter(tags=["health"])


@router.get("/health", summary="Liveness/Readiness")
async def health(request: Request, sm=Depends(get_service_manager)):
    settings = request.app.state.settings
    services = {
        "database": "unknown",
        "media": "unknown",
        "cache": "unknown",
    }
    loop = asyncio.get_running_loop()

    # Quick checks (non-failing)
    try:
        if sm.firestore:
            await loop.run_in_executor(
                sm.thread_pool, lambda: list(sm.firestore.collection("products").limit(1).stream())
            )
            services["database"] = "healthy"
        else:
            services["database"] = "uninitialized"
    except Exception:
        services["database"] = "unhealthy"

    try:
        if sm.s3:
            await loop.run_in_executor(
                sm.thread_pool, lambda: sm.s3.head_bucket(Bucket=settings.aws_s3_bucket)
            )
            services["media"] = "healthy"
        else:
            services["media"] = "uninitialized"
    except Exception:
        services["media"] = "unhealthy"

    try:
        if sm.redis:
            await loop.run_in_executor(sm.thread_pool, sm.redis.ping)
            services["cache"] = "healthy"
        else:
            services["cache"] = "uninitialized"
    except Exception:
        services["cache"] = "unhealthy"

    overall = "healthy" if all(v in ("healthy", "uninitialized") for v in services.values()) else "degraded"

    return {
        "service": settings.api_title,
        "status": overall,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "services": services,
    }
