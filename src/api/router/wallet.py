from fastapi import APIRouter, Depends

from src.api.models.request_models import CoinUpdateRequestDTO
from src.api.models.response_models import PresenceResponseDTO, WalletResponseDTO
from src.core.dependencies import get_current_user, get_presence_service, get_wallet_service
from src.core.exceptions.handler import ServiceError, ServiceErrorCode
from src.core.service.auth.models.user import AuthUser
from src.core.service.presence.presence_service import PresenceService
from src.core.service.wallet.wallet_service import WalletService

router = APIRouter(tags=["Wallet"])


@router.get("/wallet", response_model=WalletResponseDTO)
async def get_wallet(user: AuthUser = Depends(get_current_user)):
    """Balance and level of the signed-in user."""
    return WalletResponseDTO.from_user(user)


@router.post("/wallet/coins", response_model=WalletResponseDTO)
async def update_coins(
    request: CoinUpdateRequestDTO,
    user: AuthUser = Depends(get_current_user),
    wallet_service: WalletService = Depends(get_wallet_service)
):
    """
    Apply a coin delta.

    `balance_synced` in the response is False when the new balance could not
    be read back and was estimated locally.
    """
    updated = await wallet_service.update_user_coins(request.amount)
    if updated is None:
        raise ServiceError(
            code=ServiceErrorCode.SESSION_EXPIRED,
            message="Session expired. Please log in again to continue.",
            status_code=401
        )
    return WalletResponseDTO.from_user(updated)


@router.post("/presence/ping", response_model=PresenceResponseDTO, tags=["Presence"])
async def ping_presence(
    user: AuthUser = Depends(get_current_user),
    presence_service: PresenceService = Depends(get_presence_service)
):
    """Announce the signed-in user as online right now."""
    return PresenceResponseDTO(success=await presence_service.ping())
