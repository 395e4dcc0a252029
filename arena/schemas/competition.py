"""Pydantic schemas for competition puzzle requests and responses."""
from pydantic import BaseModel, Field


class InputRequestSchema(BaseModel):
    competition_id: str = Field(min_length=1)
    puzzle_id: str = Field(min_length=1)
    puzzle_index: int = Field(ge=0)
    puzzle_difficulty: str


class AnswerRequestSchema(BaseModel):
    competition_id: str = Field(min_length=1)
    puzzle_id: str = Field(min_length=1)
    puzzle_index: int = Field(ge=0)
    puzzle_step: int
    answer: str = Field(alias="solution")

    class Config:
        populate_by_name = True


class AnswerResultSchema(BaseModel):
    is_correct: bool
    puzzle_id: str
    puzzle_step: int


class PermissionSchema(BaseModel):
    has_permission: bool
