from typing import Callable, List, Optional

from src.core.logger.logger import get_logger
from src.core.service.auth.models.session import Session
from src.core.service.auth.models.user import AuthState, AuthUser

logger = get_logger(__name__)

StateListener = Callable[[AuthState], None]


class SessionStore:
    """
    In-process holder of the current session and user view.

    State is an immutable AuthState; every change replaces it and notifies
    subscribers with the new snapshot. Listeners run synchronously in
    subscription order.
    """

    def __init__(self):
        self._state = AuthState()
        self._listeners: List[StateListener] = []

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def user(self) -> Optional[AuthUser]:
        return self._state.user

    @property
    def session(self) -> Optional[Session]:
        return self._state.session

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener; returns a callable removing it"""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_session(self, session: Optional[Session]) -> None:
        self._publish(self._state.model_copy(update={"session": session}))

    def set_user(self, user: Optional[AuthUser]) -> None:
        self._publish(self._state.model_copy(update={"user": user}))

    def update_user(self, updater: Callable[[AuthUser], AuthUser]) -> Optional[AuthUser]:
        """Apply `updater` to the current user; no-op when nobody is signed in"""
        if self._state.user is None:
            return None
        user = updater(self._state.user)
        self.set_user(user)
        return user

    def set_loading(self, loading: bool) -> None:
        self._publish(self._state.model_copy(update={"loading": loading}))

    def clear(self) -> None:
        """Drop both user and session"""
        self._publish(self._state.model_copy(update={"user": None, "session": None}))

    def _publish(self, state: AuthState) -> None:
        if state == self._state:
            return
        self._state = state

        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                logger.error(
                    "Session store listener failed",
                    extra={"listener": getattr(listener, "__qualname__", repr(listener)), "error": str(e)},
                    exc_info=True
                )
