from fastapi import APIRouter, Depends

from bridge_service.app.api.deps import get_glitch_client
from bridge_service.app.core.errors import upstream_fetch_failed
from bridge_service.app.core.exceptions import UpstreamFetchError
from bridge_service.app.schemas.validators import ValidatorsResponse
from bridge_service.app.services.glitch_service import GlitchClient

router = APIRouter(prefix="/api", tags=["Validators"])


@router.get("/validators", response_model=ValidatorsResponse)
async def validators(glitch: GlitchClient = Depends(get_glitch_client)):
    try:
        overview = await glitch.get_validators_overview()
    except UpstreamFetchError as e:
        raise upstream_fetch_failed(e)

    return ValidatorsResponse(
        currentEra=overview.current_era,
        stakersCount=overview.stakers_count,
        totalStake=overview.total_stake,
    )
