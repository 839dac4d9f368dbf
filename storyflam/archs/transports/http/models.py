"""Request and response models for the newsroom HTTP API."""

from __future__ import annotations

from pydantic import BaseModel, Field


class LockRequest(BaseModel):
    """Body of a lock acquire or refresh call."""

    user_name: str = Field(min_length=1)


class PinRequest(BaseModel):
    course_id: str
    publication_name: str


class DeleteStoriesRequest(BaseModel):
    story_ids: list[str]


class SweepResponse(BaseModel):
    cleared: int


class DeletedResponse(BaseModel):
    deleted: int
