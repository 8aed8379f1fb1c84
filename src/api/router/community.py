"""Leaderboard and bug report endpoints."""

from fastapi import APIRouter, Depends, status

from src.api.models.request_models import BugReportRequestDTO
from src.api.models.response_models import LeaderboardResponseDTO, LeaderboardRowDTO, MessageResponseDTO
from src.core.context import AppContext
from src.core.dependencies import get_bug_report_service, get_context, get_leaderboard_service
from src.core.service.bug_report.bug_report_service import BugReportService
from src.core.service.leaderboard.leaderboard_service import LeaderboardService

router = APIRouter()


@router.get("/leaderboard", response_model=LeaderboardResponseDTO, tags=["Leaderboard"])
async def get_leaderboard(
    refresh: bool = False,
    leaderboard: LeaderboardService = Depends(get_leaderboard_service),
    context: AppContext = Depends(get_context)
):
    """
    Top balances, highest first.

    Served from the periodic refresh unless `refresh` forces a new read.
    """
    entries = await leaderboard.refresh() if refresh else leaderboard.entries()

    user = context.store.user
    current_username = user.username if user is not None else None

    return LeaderboardResponseDTO(
        loading=leaderboard.loading,
        refreshed_at=leaderboard.refreshed_at,
        entries=[
            LeaderboardRowDTO(
                rank=entry.rank,
                username=entry.username,
                points=entry.points,
                is_current_user=entry.username == current_username
            )
            for entry in entries
        ]
    )


@router.post(
    "/bug-reports",
    response_model=MessageResponseDTO,
    status_code=status.HTTP_201_CREATED,
    tags=["Bug Reports"]
)
async def submit_bug_report(
    request: BugReportRequestDTO,
    bug_report_service: BugReportService = Depends(get_bug_report_service)
):
    """Submit a bug report. Requires a signed-in user."""
    await bug_report_service.submit(request.message)
    return MessageResponseDTO(message="Your bug report has been submitted")
