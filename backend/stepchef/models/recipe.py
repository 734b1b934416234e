from __future__ import annotations

from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator


class Step(BaseModel):
    """One instruction in the cooking sequence, optionally paired with a timed wait."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int
    description: str
    emoji: str = ""
    timer_duration_seconds: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("timer_duration_seconds", "timerDuration"),
    )
    completed: bool = False

    @field_validator("timer_duration_seconds", mode="before")
    @classmethod
    def _no_timer_when_zero(cls, value):
        # 0 and null both mean "no timer" in imported recipes
        if value in (None, 0):
            return None
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
            raise ValueError("timer duration must be a positive number of seconds")
        if isinstance(value, float) and not value.is_integer():
            raise ValueError("timer duration must be a whole number of seconds")
        return int(value)

    @property
    def has_timer(self) -> bool:
        return bool(self.timer_duration_seconds)


class Recipe(BaseModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    emoji: str = ""
    description: str = ""
    steps: List[Step] = Field(min_length=1)

    @model_validator(mode="after")
    def _unique_step_ids(self) -> "Recipe":
        ids = [step.id for step in self.steps]
        if len(ids) != len(set(ids)):
            raise ValueError("step ids must be unique")
        return self
