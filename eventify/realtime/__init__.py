"""Change feed, live-state reconciliation and reaction broadcasting."""

from .channels import Channel, Subscription
from .feed import ChangeFeed, EVENTS_TOPIC, get_change_feed, registrations_topic
from .reactions import REACTIONS, ReactionBoard, ReactionBroadcaster, UnknownReaction, get_reaction_broadcaster
from .state import LiveTable, live_events, live_registrations

__all__ = [
    "Channel",
    "ChangeFeed",
    "EVENTS_TOPIC",
    "LiveTable",
    "REACTIONS",
    "ReactionBoard",
    "ReactionBroadcaster",
    "Subscription",
    "UnknownReaction",
    "get_change_feed",
    "get_reaction_broadcaster",
    "live_events",
    "live_registrations",
    "registrations_topic",
]
