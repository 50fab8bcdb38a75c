# src/course/state.py
from exceptions import InvalidTransition

DRAFT = "draft"
PUBLISHED = "published"
ARCHIVED = "archived"

PUBLISH = "publish"
ARCHIVE = "archive"
RESTORE = "restore"  # admin override, archived -> published

COURSE_TRANSITIONS = {
    (DRAFT, PUBLISH): PUBLISHED,
    (PUBLISHED, ARCHIVE): ARCHIVED,
    (ARCHIVED, RESTORE): PUBLISHED,
}


def next_course_status(current: str, event: str) -> str:
    """Return the status reached from ``current`` on ``event``."""
    try:
        return COURSE_TRANSITIONS[(current, event)]
    except KeyError:
        raise InvalidTransition(f"Cannot {event} a course in status {current}")
