from typing import List, Optional

from pydantic import BaseModel

from src.core.exceptions.handler import ServiceError, ServiceErrorCode
from src.core.logger.logger import get_logger
from src.infra.config.settings import get_settings

logger = get_logger(__name__)
settings = get_settings()


class Language(BaseModel):
    code: str
    name: str
    flag: str


LANGUAGES: List[Language] = [
    Language(code="en", name="English", flag="🇺🇸"),
    Language(code="es", name="Español", flag="🇪🇸"),
    Language(code="vi", name="Tiếng Việt", flag="🇻🇳"),
]


class LanguageService:
    """Current UI language; falls back to the first supported one"""

    def __init__(self, default: Optional[str] = None):
        self._current = self._find(default or settings.DEFAULT_LANGUAGE) or LANGUAGES[0]

    @staticmethod
    def _find(code: str) -> Optional[Language]:
        code = (code or "").lower()
        return next((language for language in LANGUAGES if language.code == code), None)

    def current(self) -> Language:
        return self._current

    def available(self) -> List[Language]:
        return list(LANGUAGES)

    def change_language(self, code: str) -> Language:
        language = self._find(code)
        if language is None:
            raise ServiceError(
                code=ServiceErrorCode.INVALID_INPUT,
                message=f"Unsupported language: {code}",
                status_code=422,
                details={"supported": [l.code for l in LANGUAGES]}
            )
        self._current = language
        logger.info("Language changed", extra={"language": language.code})
        return language
