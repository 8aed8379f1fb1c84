from fastapi import APIRouter, Depends, status

from src.api.models.request_models import LoginRequestDTO, SignupRequestDTO
from src.api.models.response_models import AuthStateResponseDTO
from src.core.dependencies import get_auth_service
from src.core.service.auth.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.get("/state", response_model=AuthStateResponseDTO)
async def get_auth_state(auth_service: AuthService = Depends(get_auth_service)):
    """Current session and user view."""
    return AuthStateResponseDTO.from_state(auth_service.state)


@router.post("/login", response_model=AuthStateResponseDTO)
async def login(
    request: LoginRequestDTO,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Sign in with email and password.

    Returns the state after the new session has been resolved into a user view.
    """
    state = await auth_service.login(request.email, request.password)
    return AuthStateResponseDTO.from_state(state)


@router.post("/signup", response_model=AuthStateResponseDTO, status_code=status.HTTP_201_CREATED)
async def signup(
    request: SignupRequestDTO,
    auth_service: AuthService = Depends(get_auth_service)
):
    """Create an account. The session is empty when email confirmation is pending."""
    state = await auth_service.signup(request.email, request.username, request.password)
    return AuthStateResponseDTO.from_state(state)


@router.post("/logout", response_model=AuthStateResponseDTO)
async def logout(auth_service: AuthService = Depends(get_auth_service)):
    """Sign out and clear the local session."""
    state = await auth_service.logout()
    return AuthStateResponseDTO.from_state(state)
