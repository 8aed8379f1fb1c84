import pytest

from src.core.exceptions.handler import ServiceError, ServiceErrorCode
from src.core.service.auth.models.user import AuthUser
from src.core.service.i18n.language_service import LanguageService
from src.core.service.navigation.routes import NOT_FOUND, can_access, resolve_route


@pytest.mark.parametrize("path, name, tab", [
    ("/", "index", None),
    ("/free-key", "index", None),
    ("/spin", "index", "spin"),
    ("/shop/", "index", "shop"),
    ("afk-farm", "index", "afk"),
    ("/games/mines", "index", "games"),
    ("/bug-report", "bug_report", None),
    ("/admin", "admin", None),
])
def test_known_paths(path, name, tab):
    page = resolve_route(path)

    assert page.name == name
    assert page.active_tab == tab


def test_unknown_path_is_not_found():
    assert resolve_route("/does-not-exist") == NOT_FOUND


def test_admin_page_requires_privileges():
    admin_page = resolve_route("/admin")
    player = AuthUser(id="u1", username="player")
    owner = AuthUser(id="u2", username="owner", is_owner=True)
    admin = AuthUser(id="u3", username="admin", is_admin=True)

    assert can_access(admin_page, None) is False
    assert can_access(admin_page, player) is False
    assert can_access(admin_page, owner) is True
    assert can_access(admin_page, admin) is True
    assert can_access(resolve_route("/spin"), None) is True


def test_default_language_and_fallback():
    assert LanguageService("es").current().code == "es"
    assert LanguageService("xx").current().code == "en"


def test_available_languages():
    codes = [language.code for language in LanguageService("en").available()]

    assert codes == ["en", "es", "vi"]


def test_change_language():
    service = LanguageService("en")

    language = service.change_language("VI")

    assert language.code == "vi"
    assert service.current().name == "Tiếng Việt"


def test_unsupported_language_is_rejected():
    service = LanguageService("en")

    with pytest.raises(ServiceError) as exc_info:
        service.change_language("fr")

    assert exc_info.value.code == ServiceErrorCode.INVALID_INPUT
    assert service.current().code == "en"
