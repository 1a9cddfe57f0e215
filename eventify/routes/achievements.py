# eventify/routes/achievements.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from eventify.auth_token import get_current_user
from eventify.database import get_db
from eventify.models.user import User
from eventify.schemas import AchievementSummaryRead
from eventify.services.achievements import achievements_for

router = APIRouter(prefix="/achievements", tags=["Achievements"])


@router.get("/me", response_model=AchievementSummaryRead)
async def my_achievements(
    previous_count: Optional[int] = Query(
        None,
        ge=0,
        description="Earned-badge count the client saw last time; used to flag newly earned badges.",
    ),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    summary = await achievements_for(db, user, previous_count)
    return AchievementSummaryRead.model_validate(summary)
