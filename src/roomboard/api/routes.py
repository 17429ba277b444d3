import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..auth import TokenProvider
from ..availability import get_today_availability
from ..config import Settings
from ..models import AvailabilityResult
from .deps import get_app_settings, get_http_factory, get_token_provider
from .models import AvailabilityResponse, ErrorResponse, SlotResponse


logger = logging.getLogger(__name__)

router = APIRouter()


def convert_availability_to_response(result: AvailabilityResult) -> AvailabilityResponse:
    """
    Convert an internal AvailabilityResult to the board's response model.
    """
    return AvailabilityResponse(
        dateDisplay=result.date_display,
        grid=[SlotResponse(label=cell.label, booked=cell.booked) for cell in result.grid]
    )


@router.get(
    "/api/today",
    response_model=AvailabilityResponse,
    responses={500: {"model": ErrorResponse}},
    tags=["availability"],
)
@router.get(
    "/today-availability",
    response_model=AvailabilityResponse,
    responses={500: {"model": ErrorResponse}},
    tags=["availability"],
    include_in_schema=False,
)
async def today_availability(
    settings: Settings = Depends(get_app_settings),
    token_provider: TokenProvider = Depends(get_token_provider),
    http_factory=Depends(get_http_factory),
):
    """
    Today's half-hour grid for the configured room, each slot marked booked or free.
    """
    try:
        result = await get_today_availability(token_provider, settings, http_factory=http_factory)
    except Exception as exc:
        logger.exception("Failed to build today's availability")
        return JSONResponse(status_code=500, content={"error": str(exc)})
    return convert_availability_to_response(result)
