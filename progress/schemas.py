# src/progress/schemas.py
from pydantic import BaseModel


class ProgressUpdate(BaseModel):
    """Schema for reporting progress; range is checked by the tracker."""
    progress: int


class ProgressResponse(BaseModel):
    subscription_id: int
    progress: int
    completed: bool
    status: str

    @classmethod
    def from_orm(cls, obj):
        return cls(
            subscription_id=obj.id,
            progress=obj.progress,
            completed=obj.completed,
            status=obj.status,
        )
