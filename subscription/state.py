# src/subscription/state.py
"""Subscription status transitions.

Every (status, event) pair is listed: a pair mapping to a different status
is a transition, a pair mapping to the same status is a no-op. Anything not
in the table is illegal.
"""
from exceptions import InvalidTransition

ACTIVE = "active"
EXPIRED = "expired"
CANCELLED = "cancelled"

SUBSCRIPTION_STATUSES = (ACTIVE, EXPIRED, CANCELLED)

EXPIRE = "expire"
CANCEL = "cancel"
RESUBSCRIBE = "resubscribe"

SUBSCRIPTION_TRANSITIONS = {
    (ACTIVE, EXPIRE): EXPIRED,
    (ACTIVE, CANCEL): CANCELLED,
    (ACTIVE, RESUBSCRIBE): ACTIVE,
    (EXPIRED, EXPIRE): EXPIRED,
    (EXPIRED, CANCEL): EXPIRED,
    (EXPIRED, RESUBSCRIBE): ACTIVE,
    (CANCELLED, EXPIRE): CANCELLED,
    (CANCELLED, CANCEL): CANCELLED,
    (CANCELLED, RESUBSCRIBE): ACTIVE,
}


def next_subscription_status(current: str, event: str) -> str:
    try:
        return SUBSCRIPTION_TRANSITIONS[(current, event)]
    except KeyError:
        raise InvalidTransition(f"Cannot {event} a subscription in status {current}")


def is_noop(current: str, event: str) -> bool:
    return next_subscription_status(current, event) == current
