# groups/__init__.py
from .cache import GroupStateCache, ParticipantMatch
from .group import Group, bot_is_admin, is_admin, is_participant
from .models import GroupSettings, GroupState, Participant

__all__ = [
    "GroupStateCache",
    "ParticipantMatch",
    "Group",
    "bot_is_admin",
    "is_admin",
    "is_participant",
    "GroupSettings",
    "GroupState",
    "Participant",
]
