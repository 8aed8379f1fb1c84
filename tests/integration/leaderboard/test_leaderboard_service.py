import pytest

from src.core.service.backend.errors import BackendErrorKind
from src.core.service.leaderboard.leaderboard_service import LeaderboardService


@pytest.fixture
def leaderboard(gateway) -> LeaderboardService:
    return LeaderboardService(gateway, limit=10, interval=3600)


def add_players(gateway, balances):
    for index, balance in enumerate(balances):
        user_id = f"player-{index}"
        gateway.add_user(user_id, f"{user_id}@example.com", "pw", f"player{index}", balance=balance)


@pytest.mark.asyncio
async def test_initially_loading_and_empty(leaderboard):
    assert leaderboard.loading is True
    assert leaderboard.entries() == []
    assert leaderboard.refreshed_at is None


@pytest.mark.asyncio
async def test_refresh_returns_at_most_ten_sorted_descending(leaderboard, gateway):
    add_players(gateway, [5, 500, 30, 120, 0, 75, 900, 12, 44, 310, 8, 61])

    entries = await leaderboard.refresh()

    assert len(entries) == 10
    points = [entry.points for entry in entries]
    assert points == sorted(points, reverse=True)
    assert points[0] == 900
    assert [entry.rank for entry in entries] == list(range(1, 11))
    assert leaderboard.loading is False
    assert leaderboard.refreshed_at is not None
    assert gateway.calls_to("fetch_leaderboard") == [(10,)]


@pytest.mark.asyncio
async def test_refresh_sorts_unordered_rows(gateway):
    async def unordered(limit):
        return [
            {"username": "low", "balance": 1},
            {"username": "high", "balance": 99},
            {"username": "mid", "balance": 50},
        ]

    gateway.fetch_leaderboard = unordered
    leaderboard = LeaderboardService(gateway, limit=2, interval=3600)

    entries = await leaderboard.refresh()

    assert [entry.username for entry in entries] == ["high", "mid"]


@pytest.mark.asyncio
async def test_equal_balances_keep_backend_order(gateway):
    async def tied(limit):
        return [
            {"username": "first", "balance": 10},
            {"username": "second", "balance": 10},
        ]

    gateway.fetch_leaderboard = tied
    leaderboard = LeaderboardService(gateway, limit=10, interval=3600)

    entries = await leaderboard.refresh()

    assert [entry.username for entry in entries] == ["first", "second"]


@pytest.mark.asyncio
async def test_failed_refresh_keeps_previous_list(leaderboard, gateway):
    await leaderboard.refresh()
    previous = leaderboard.entries()
    assert previous

    gateway.fail("fetch_leaderboard", BackendErrorKind.TIMEOUT, "fetch_leaderboard timed out")
    entries = await leaderboard.refresh()

    assert entries == previous
    assert leaderboard.loading is False


@pytest.mark.asyncio
async def test_failed_first_refresh_ends_loading_with_empty_list(leaderboard, gateway):
    gateway.fail("fetch_leaderboard")

    entries = await leaderboard.refresh()

    assert entries == []
    assert leaderboard.loading is False
