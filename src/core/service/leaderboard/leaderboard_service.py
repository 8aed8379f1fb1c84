import asyncio
from contextlib import suppress
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field

from src.core.logger.logger import get_logger
from src.core.service.backend.base import BackendGateway
from src.core.service.backend.errors import BackendError
from src.infra.config.settings import get_settings

logger = get_logger(__name__)
settings = get_settings()


class LeaderboardEntry(BaseModel):
    """One row of the top balances list"""
    rank: int = Field(..., ge=1)
    username: str
    points: int


class LeaderboardService:
    """Periodically reads the highest wallet balances"""

    def __init__(
        self,
        gateway: BackendGateway,
        limit: Optional[int] = None,
        interval: Optional[float] = None
    ):
        self.gateway = gateway
        self.limit = limit or settings.LEADERBOARD_LIMIT
        self.interval = interval if interval is not None else settings.LEADERBOARD_REFRESH_SECONDS

        self.loading = True
        self.refreshed_at: Optional[datetime] = None
        self._entries: List[LeaderboardEntry] = []
        self._task: Optional[asyncio.Task] = None

    def entries(self) -> List[LeaderboardEntry]:
        return list(self._entries)

    async def refresh(self) -> List[LeaderboardEntry]:
        """
        Replace the list with a fresh read.

        A failed read keeps the previous list.
        """
        try:
            rows = await self.gateway.fetch_leaderboard(self.limit)
        except BackendError as e:
            logger.error("Error fetching leaderboard", extra={"error": e.message, "error_kind": e.kind.value})
            return self.entries()
        finally:
            self.loading = False

        # sorted() is stable, so equal balances keep the backend's order
        ranked = sorted(rows, key=lambda row: row["balance"], reverse=True)[:self.limit]
        self._entries = [
            LeaderboardEntry(rank=index + 1, username=row["username"], points=row["balance"])
            for index, row in enumerate(ranked)
        ]
        self.refreshed_at = datetime.now(timezone.utc)

        logger.debug("Leaderboard refreshed", extra={"entries": len(self._entries)})
        return self.entries()

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task

    async def _run(self) -> None:
        while True:
            await self.refresh()
            await asyncio.sleep(self.interval)
