from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, computed_field, model_validator

from .recipe import Step


class TimerMode(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    ALARMING = "alarming"


def format_time(seconds: float) -> str:
    """Render seconds as MM:SS, truncating fractions."""
    whole = int(max(0.0, seconds))
    return f"{whole // 60:02d}:{whole % 60:02d}"


class TimerState(BaseModel):
    active_step_id: Optional[int] = None
    remaining_seconds: float = Field(default=0.0, ge=0)
    total_duration_seconds: float = Field(default=0.0, ge=0)
    mode: TimerMode = TimerMode.IDLE
    # absolute epoch seconds at which a running countdown reaches zero
    anchor_end_time: Optional[float] = None

    @model_validator(mode="after")
    def _check_invariants(self) -> "TimerState":
        if (self.active_step_id is None) != (self.mode == TimerMode.IDLE):
            raise ValueError("active_step_id must be set exactly when the timer is not idle")
        if self.mode == TimerMode.RUNNING and self.anchor_end_time is None:
            raise ValueError("a running timer needs an anchor_end_time")
        return self

    @computed_field
    @property
    def display(self) -> str:
        return format_time(self.remaining_seconds)


class CookingSnapshot(BaseModel):
    """Everything that survives a reload: the step list and the timer."""

    recipe_id: Optional[str] = None
    steps: List[Step] = Field(default_factory=list)
    timer: TimerState = Field(default_factory=TimerState)

    @model_validator(mode="after")
    def _unique_step_ids(self) -> "CookingSnapshot":
        ids = [step.id for step in self.steps]
        if len(ids) != len(set(ids)):
            raise ValueError("step ids must be unique")
        return self

    @computed_field
    @property
    def completed_count(self) -> int:
        return sum(1 for step in self.steps if step.completed)

    @computed_field
    @property
    def current_step_id(self) -> Optional[int]:
        for step in self.steps:
            if not step.completed:
                return step.id
        return None
