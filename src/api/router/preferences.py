"""Language, notices and navigation endpoints used by the UI shell."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from src.api.models.request_models import LanguageRequestDTO
from src.api.models.response_models import LanguageResponseDTO, NavigationResponseDTO, NoticesResponseDTO
from src.core.context import AppContext
from src.core.dependencies import get_context, get_language_service
from src.core.service.i18n.language_service import LanguageService
from src.core.service.navigation.routes import NOT_FOUND, can_access, resolve_route

router = APIRouter()


@router.get("/language", response_model=LanguageResponseDTO, tags=["Language"])
async def get_language(language_service: LanguageService = Depends(get_language_service)):
    return LanguageResponseDTO(current=language_service.current(), available=language_service.available())


@router.put("/language", response_model=LanguageResponseDTO, tags=["Language"])
async def change_language(
    request: LanguageRequestDTO,
    language_service: LanguageService = Depends(get_language_service)
):
    language_service.change_language(request.code)
    return LanguageResponseDTO(current=language_service.current(), available=language_service.available())


@router.get("/notices", response_model=NoticesResponseDTO, tags=["Notices"])
async def get_notices(context: AppContext = Depends(get_context)):
    """Most recent notices, oldest first."""
    return NoticesResponseDTO(notices=context.notifier.recent())


@router.get("/navigation", response_model=NavigationResponseDTO, tags=["Navigation"])
async def navigate(path: str = "/", context: AppContext = Depends(get_context)):
    """Resolve a client route to the page that renders it."""
    page = resolve_route(path)
    body = NavigationResponseDTO(
        path=path,
        page=page.name,
        active_tab=page.active_tab,
        allowed=can_access(page, context.store.user)
    )
    if page is NOT_FOUND:
        return JSONResponse(status_code=404, content=body.model_dump())
    return body
