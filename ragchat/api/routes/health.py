"""Health check endpoints.

- /health: liveness, always 200
- /healthz: database connectivity plus knowledge base handle state
"""

import json
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ragchat.api.deps import get_services
from ragchat.services import Services

router = APIRouter()


async def check_db(services: Services) -> tuple[bool, str]:
    """Check database connectivity.

    Returns:
        (is_ok, status_message)
    """
    if services.session_factory is None:
        return (True, "in_memory")

    try:
        async with services.session_factory() as session:
            await session.execute(text("SELECT 1"))
        return (True, "ok")
    except (SQLAlchemyError, OSError) as e:
        return (False, f"error: {type(e).__name__}")


async def check_knowledge_base(services: Services) -> str:
    """Report whether a knowledge base handle is present (no external call)."""
    if services.knowledge_base is None:
        return "not_configured"
    if await services.knowledge_base.is_initialized():
        return "initialized"
    return "not_initialized"


@router.get("/health")
async def health() -> dict[str, str]:
    """Simple health check for Docker/k8s.

    Returns:
        200 OK always (application is running)
    """
    return {"status": "ok"}


@router.get("/healthz", response_model=None)
async def healthz(
    services: Annotated[Services, Depends(get_services)],
) -> dict[str, Any] | Response:
    """Component health.

    Returns:
        200 with component status if the database is reachable
        503 otherwise
    """
    db_ok, db_status = await check_db(services)
    kb_status = await check_knowledge_base(services)

    response_body = {
        "status": "ok" if db_ok else "degraded",
        "components": {
            "db": db_status,
            "knowledge_base": kb_status,
            "context_mode": services.settings.context_mode,
        },
    }

    if not db_ok:
        return Response(
            content=json.dumps(response_body),
            status_code=503,
            media_type="application/json",
        )

    return response_body
