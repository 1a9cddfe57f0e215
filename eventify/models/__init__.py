"""ORM models; importing this package registers every table with ``Base``."""

from eventify.models.user import User
from eventify.models.event import Event
from eventify.models.registration import Registration
from eventify.models.team_member import TeamMember
from eventify.models.feedback import Feedback, OrganizationRating

__all__ = [
    "Event",
    "Feedback",
    "OrganizationRating",
    "Registration",
    "TeamMember",
    "User",
]
