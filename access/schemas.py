# src/access/schemas.py
from pydantic import BaseModel


class AccessDecision(BaseModel):
    """Outcome of a content gating check."""
    allowed: bool
    reason: str
