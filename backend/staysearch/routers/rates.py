"""Rates router — cached hotel rates search."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from staysearch.dependencies import get_pricing, get_search_service
from staysearch.schemas.search import RatesSearchRequest
from staysearch.services.pricing import PricingInputs
from staysearch.services.search_service import SearchService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/search")
async def search_rates(
    req: RatesSearchRequest,
    search_service: SearchService = Depends(get_search_service),
    pricing: PricingInputs = Depends(get_pricing),
):
    """Search rates for a place or free-text query. Errors are SearchError subclasses."""
    result = await search_service.search(req.to_query(), pricing)
    return JSONResponse(result.to_payload(), headers=result.pricing.debug_headers())
