from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from eventify.auth_token import get_current_user
from eventify.database import get_db
from eventify.models.user import User
from eventify.realtime import ReactionBroadcaster, UnknownReaction, get_reaction_broadcaster
from eventify.schemas import ReactionRead, ReactionToggle, ReactionToggleResult
from eventify.services.registrations import get_event_or_404

router = APIRouter(prefix="/events", tags=["Reactions"])


@router.get("/{event_id}/reactions", response_model=List[ReactionRead])
async def event_reactions(
    event_id: int,
    db: AsyncSession = Depends(get_db),
    reactions: ReactionBroadcaster = Depends(get_reaction_broadcaster),
):
    await get_event_or_404(db, event_id)
    return reactions.board.state(event_id)


@router.post("/{event_id}/reactions", response_model=ReactionToggleResult)
async def toggle_reaction(
    event_id: int,
    payload: ReactionToggle,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    reactions: ReactionBroadcaster = Depends(get_reaction_broadcaster),
):
    await get_event_or_404(db, event_id)
    try:
        toggled = reactions.toggle(event_id, user.id, payload.reaction)
    except UnknownReaction as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return ReactionToggleResult(
        event_id=event_id,
        reaction=toggled.reaction,
        active=toggled.active,
        count=toggled.count,
    )
