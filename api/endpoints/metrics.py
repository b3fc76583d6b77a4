# api/endpoints/metrics.py
from fastapi import APIRouter, Request, Response

from core.logging import logger

router = APIRouter(tags=["metrics"])


@router.get("/metrics", summary="Prometheus scrape endpoint")
def metrics(request: Request) -> Response:
    app_metrics = request.app.state.metrics
    try:
        body = app_metrics.render()
    except Exception as e:
        logger.exception("Metrics collection failed", error=str(e))
        app_metrics.errors.labels(type="metrics").inc()
        detail = "metrics collection failed"
        if request.app.state.settings.debug:
            detail = f"{detail}: {e}"
        return Response(detail, status_code=500, media_type="text/plain")
    return Response(body, media_type=app_metrics.content_type)
