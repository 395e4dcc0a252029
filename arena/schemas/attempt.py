"""Pydantic schemas for attempts and the live TryUpdate event."""
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from arena.core.clock import ensure_utc


class GroupSchema(BaseModel):
    id: str
    name: str
    description: str | None = None

    class Config:
        from_attributes = True
        frozen = True


class UserSnapshotSchema(BaseModel):
    """User as shown to spectators, with group memberships denormalized in."""

    id: str
    firstname: str
    lastname: str
    groups: list[GroupSchema] = []

    class Config:
        from_attributes = True
        frozen = True


class AttemptSchema(BaseModel):
    id: str
    competition_id: str
    user_id: str
    puzzle_id: str
    puzzle_index: int
    puzzle_lvl: str
    step: int
    start_time: datetime
    end_time: datetime | None = None
    attempts: int
    last_answer: str | None = None
    last_move_time: datetime | None = None
    score: float = 0.0

    class Config:
        from_attributes = True

    @field_validator("start_time", "end_time", "last_move_time")
    @classmethod
    def _utc(cls, value: datetime | None) -> datetime | None:
        # SQLite hands back naive datetimes
        return ensure_utc(value)


class AttemptWithUserSchema(AttemptSchema):
    user: UserSnapshotSchema | None = None

    class Config:
        from_attributes = True
        frozen = True


UpdateType = Literal["new", "update"]


class TryUpdateSchema(BaseModel):
    """Broadcast event: an attempt was created ("new") or changed ("update")."""

    competition_id: str
    attempt: AttemptWithUserSchema = Field(alias="try")
    update_type: UpdateType

    class Config:
        frozen = True
        populate_by_name = True

    def to_message(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
