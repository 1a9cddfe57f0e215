"""Ephemeral emoji reactions on events.

Reaction state lives only in this process. Toggles are applied locally
first and then broadcast on a channel that is separate from the change feed,
with bounded subscriber queues: a subscriber that falls behind loses
toggles rather than slowing anyone down.
"""

from __future__ import annotations

import logging
import os
from collections import defaultdict
from contextlib import asynccontextmanager
from dataclasses import asdict, dataclass
from typing import AsyncIterator, Dict, List, Optional, Set

from eventify.realtime.channels import Channel, Subscription

logger = logging.getLogger(__name__)

REACTIONS = ("👍", "👏", "❤️", "🔥", "🎉", "🤔")


class UnknownReaction(ValueError):
    pass


@dataclass
class ReactionToggled:
    event_id: int
    reaction: str
    user_id: int
    active: bool
    count: int

    def as_message(self) -> dict:
        return asdict(self)


class ReactionBoard:
    """Participant sets per (event, reaction)."""

    def __init__(self) -> None:
        self._participants: Dict[int, Dict[str, Set[int]]] = defaultdict(lambda: {r: set() for r in REACTIONS})

    @staticmethod
    def _check(reaction: str) -> None:
        if reaction not in REACTIONS:
            raise UnknownReaction(f"Unsupported reaction {reaction!r}")

    def _users(self, event_id: int, reaction: str) -> Set[int]:
        # reads must not create an entry for the event
        self._check(reaction)
        per_event = self._participants.get(event_id)
        return per_event[reaction] if per_event else set()

    def participants(self, event_id: int, reaction: str) -> Set[int]:
        return set(self._users(event_id, reaction))

    def count(self, event_id: int, reaction: str) -> int:
        return len(self._users(event_id, reaction))

    def has_reacted(self, event_id: int, reaction: str, user_id: int) -> bool:
        return user_id in self._users(event_id, reaction)

    def toggle(self, event_id: int, user_id: int, reaction: str) -> ReactionToggled:
        self._check(reaction)
        users = self._participants[event_id][reaction]
        if user_id in users:
            users.discard(user_id)
            active = False
        else:
            users.add(user_id)
            active = True
        return ReactionToggled(event_id=event_id, reaction=reaction, user_id=user_id, active=active, count=len(users))

    def state(self, event_id: int) -> List[dict]:
        rows = []
        for r in REACTIONS:
            users = self._users(event_id, r)
            rows.append({"reaction": r, "count": len(users), "users": sorted(users)})
        return rows

    def events(self) -> Set[int]:
        return set(self._participants)

    def clear(self, event_id: int) -> None:
        self._participants.pop(event_id, None)


def _queue_bound() -> int:
    try:
        return max(1, int(os.getenv("REACTION_QUEUE_SIZE", "100")))
    except ValueError:
        return 100


class ReactionBroadcaster:
    def __init__(self, board: Optional[ReactionBoard] = None, channel: Optional[Channel] = None) -> None:
        self.board = board or ReactionBoard()
        self.channel = channel or Channel(name="reactions", max_queue=_queue_bound(), drop_when_full=True)

    @staticmethod
    def topic(event_id: int) -> str:
        return f"event-reactions-{event_id}"

    @asynccontextmanager
    async def listen(self, event_id: int) -> AsyncIterator[Subscription]:
        async with self.channel.listen(self.topic(event_id)) as sub:
            yield sub

    def toggle(
        self,
        event_id: int,
        user_id: int,
        reaction: str,
        *,
        origin: Optional[Subscription] = None,
    ) -> ReactionToggled:
        """Flip ``user_id``'s reaction and tell everyone except ``origin``."""

        result = self.board.toggle(event_id, user_id, reaction)
        self.channel.publish(self.topic(event_id), result.as_message(), exclude=origin)
        return result


_broadcaster: Optional[ReactionBroadcaster] = None


def get_reaction_broadcaster() -> ReactionBroadcaster:
    global _broadcaster
    if _broadcaster is None:
        _broadcaster = ReactionBroadcaster()
    return _broadcaster
