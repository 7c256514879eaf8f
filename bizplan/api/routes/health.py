from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(request: Request) -> dict:
    """Liveness check for load balancers and uptime checks.

    Does not call Supabase or the LLM provider; it only reports that the
    process is serving requests.
    """

    return {"status": "ok", "version": request.app.version}
