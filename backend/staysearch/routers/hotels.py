"""Hotel details router — batch details for progressive enrichment."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from staysearch.dependencies import get_details_service, get_pricing
from staysearch.schemas.search import HotelDetailsBatchRequest
from staysearch.services.hotel_details_service import HotelDetailsService
from staysearch.services.pricing import PricingInputs
from staysearch.services.search_errors import InvalidParamsError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/details/batch")
async def hotel_details_batch(
    req: HotelDetailsBatchRequest,
    details_service: HotelDetailsService = Depends(get_details_service),
    pricing: PricingInputs = Depends(get_pricing),
):
    """Rating / review count / star rating for up to 80 hotels."""
    hotel_ids = details_service.clean_ids(req.hotel_ids)
    if not hotel_ids:
        raise InvalidParamsError("hotelIds array is required and must contain at least one id")

    details = await details_service.get_details_batch(hotel_ids, req.language, pricing.channel)
    return JSONResponse({
        "hotelDetailsByHotelId": {k: v.to_dict() for k, v in details.items()},
    })
