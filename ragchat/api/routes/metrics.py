"""Prometheus metrics endpoint."""

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter()


@router.get("/metrics")
async def metrics() -> Response:
    """Prometheus metrics endpoint.

    Exposes all registered Prometheus metrics including:
    - context_injections_total{mode, outcome}
    - retrieval_failures_total{stage}
    - embedding_latency_ms{provider}
    """
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
