from fastapi import Header, Request

from staysearch.services.hotel_details_service import HotelDetailsService
from staysearch.services.pricing import PricingInputs, resolve_pricing
from staysearch.services.search_service import SearchService
from staysearch.services.search_session import SessionRegistry


def get_search_service(request: Request) -> SearchService:
    return request.app.state.search_service


def get_details_service(request: Request) -> HotelDetailsService:
    return request.app.state.details_service


def get_session_registry(request: Request) -> SessionRegistry:
    return request.app.state.sessions


def get_pricing(x_channel: str | None = Header(default=None)) -> PricingInputs:
    """Channel comes from the identity layer in front of this service; defaults to b2c."""
    # X-Channel must be set by a trusted proxy that strips any client-supplied value.
    # This service does no auth, so a raw client header would unlock CUG margins.
    return resolve_pricing(x_channel)
