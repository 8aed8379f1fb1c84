"""Client-side route table."""

from typing import Dict, Optional

from pydantic import BaseModel

from src.core.service.auth.models.user import AuthUser


class Page(BaseModel):
    name: str
    active_tab: Optional[str] = None
    requires_admin: bool = False


NOT_FOUND = Page(name="not_found")

ROUTES: Dict[str, Page] = {
    "/": Page(name="index"),
    "/free-key": Page(name="index"),
    "/spin": Page(name="index", active_tab="spin"),
    "/shop": Page(name="index", active_tab="shop"),
    "/afk-farm": Page(name="index", active_tab="afk"),
    "/leaderboard": Page(name="index", active_tab="afk"),
    "/games/mines": Page(name="index", active_tab="games"),
    "/bug-report": Page(name="bug_report"),
    "/admin": Page(name="admin", requires_admin=True),
}


def resolve_route(path: str) -> Page:
    """Page for `path`; unknown paths map to the not-found page"""
    normalized = "/" + (path or "").strip("/")
    return ROUTES.get(normalized, NOT_FOUND)


def can_access(page: Page, user: Optional[AuthUser]) -> bool:
    if not page.requires_admin:
        return True
    return user is not None and (user.is_admin or user.is_owner)
