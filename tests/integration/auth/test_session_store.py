from src.core.service.auth.models.session import Session
from src.core.service.auth.models.user import AuthUser
from src.core.service.auth.session_store import SessionStore


def make_user(**overrides) -> AuthUser:
    data = {"id": "u1", "email": "u1@example.com", "username": "u1", "coins": 10}
    data.update(overrides)
    return AuthUser(**data)


def test_initial_state_is_loading_and_anonymous():
    store = SessionStore()

    assert store.state.loading is True
    assert store.user is None
    assert store.session is None
    assert store.state.is_authenticated is False


def test_subscribers_receive_new_snapshots():
    store = SessionStore()
    seen = []
    store.subscribe(seen.append)

    store.set_session(Session(access_token="a", user_id="u1"))
    store.set_user(make_user())

    assert len(seen) == 2
    assert seen[0].session.user_id == "u1"
    assert seen[0].user is None
    assert seen[1].user.username == "u1"
    assert store.state.is_authenticated


def test_identical_state_is_not_republished():
    store = SessionStore()
    seen = []
    store.subscribe(seen.append)

    store.set_loading(True)

    assert seen == []


def test_update_user_without_user_is_noop():
    store = SessionStore()
    seen = []
    store.subscribe(seen.append)

    result = store.update_user(lambda prev: prev.model_copy(update={"coins": 99}))

    assert result is None
    assert seen == []


def test_update_user_replaces_snapshot():
    store = SessionStore()
    store.set_user(make_user())
    before = store.user

    store.update_user(lambda prev: prev.model_copy(update={"coins": prev.coins + 5}))

    assert store.user.coins == 15
    assert before.coins == 10


def test_clear_drops_user_and_session():
    store = SessionStore()
    store.set_session(Session(access_token="a", user_id="u1"))
    store.set_user(make_user())

    store.clear()

    assert store.user is None
    assert store.session is None


def test_unsubscribe_stops_notifications():
    store = SessionStore()
    seen = []
    unsubscribe = store.subscribe(seen.append)

    unsubscribe()
    store.set_loading(False)

    assert seen == []


def test_failing_listener_does_not_block_others():
    store = SessionStore()
    seen = []

    def broken(state):
        raise RuntimeError("boom")

    store.subscribe(broken)
    store.subscribe(seen.append)

    store.set_loading(False)

    assert len(seen) == 1
    assert store.state.loading is False
