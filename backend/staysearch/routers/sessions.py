"""Search session router — server-driven progressive enrichment and result views."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from staysearch.dependencies import get_pricing, get_session_registry
from staysearch.schemas.search import ResultsViewRequest, SessionSearchRequest
from staysearch.services.pricing import PricingInputs
from staysearch.services.search_session import SessionRegistry

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/{session_id}/search")
async def session_search(
    session_id: str,
    req: SessionSearchRequest,
    sessions: SessionRegistry = Depends(get_session_registry),
    pricing: PricingInputs = Depends(get_pricing),
):
    """Start a new search for this session; supersedes any earlier one."""
    session = sessions.get_or_create(session_id)
    result = await session.submit(req.to_query(), pricing, req.show_all_properties)

    payload = result.to_payload()
    payload["generation"] = session.scheduler.generation
    payload["hasSecondarySegment"] = session.secondary is not None
    return JSONResponse(payload, headers=result.pricing.debug_headers())


@router.post("/{session_id}/view")
async def session_view(
    session_id: str,
    req: ResultsViewRequest | None = None,
    sessions: SessionRegistry = Depends(get_session_registry),
):
    """Filtered, sorted results with whatever details have been enriched so far."""
    session = sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Search session not found")

    criteria = (req or ResultsViewRequest()).to_criteria()
    return session.view(criteria)
