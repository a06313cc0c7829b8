from .binding import SessionBinding, new_session_id
from .reaper import SessionReaper
from .registry import SessionEntry, SessionRegistry

__all__ = [
    "SessionBinding",
    "SessionEntry",
    "SessionReaper",
    "SessionRegistry",
    "new_session_id",
]
