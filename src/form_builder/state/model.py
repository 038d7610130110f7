from __future__ import annotations

from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, model_validator

from form_builder.config import DEFAULT_TITLE
from form_builder.schemas.fields import AnyField, Step, Steps


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"


class PreviewMode(str, Enum):
    DESKTOP = "desktop"
    TABLET = "tablet"
    MOBILE = "mobile"


EMPTY_STEPS: Steps = ((),)


class FormState(BaseModel):
    """
    Immutable snapshot of the builder.

    `steps`, `past` and `future` are tuples of frozen fields, so a snapshot
    can be shared freely: nothing reachable from it can change.
    """

    model_config = ConfigDict(frozen=True)

    steps: Steps = EMPTY_STEPS
    current_step: int = 0
    selected_field_id: Optional[str] = None
    past: Tuple[Steps, ...] = ()
    future: Tuple[Steps, ...] = ()
    theme: Theme = Theme.LIGHT
    preview_mode: PreviewMode = PreviewMode.DESKTOP
    form_id: Optional[str] = None
    title: str = DEFAULT_TITLE
    description: str = ""

    @model_validator(mode="after")
    def _check_step_pointer(self) -> "FormState":
        if not self.steps:
            raise ValueError("steps must contain at least one step")
        if not 0 <= self.current_step < len(self.steps):
            raise ValueError(f"current_step {self.current_step} out of range for {len(self.steps)} steps")
        return self

    @property
    def current_fields(self) -> Step:
        return self.steps[self.current_step]

    @property
    def step_count(self) -> int:
        return len(self.steps)

    @property
    def past_length(self) -> int:
        return len(self.past)

    @property
    def future_length(self) -> int:
        return len(self.future)

    @property
    def can_undo(self) -> bool:
        return bool(self.past)

    @property
    def can_redo(self) -> bool:
        return bool(self.future)

    @property
    def selected_field(self) -> Optional[AnyField]:
        if self.selected_field_id is None:
            return None
        return self.find_field(self.selected_field_id)

    def find_field(self, field_id: str, *, current_step_only: bool = True) -> Optional[AnyField]:
        steps = (self.current_fields,) if current_step_only else self.steps
        for step in steps:
            for f in step:
                if f.id == field_id:
                    return f
        return None

    def all_fields(self) -> Tuple[AnyField, ...]:
        return tuple(f for step in self.steps for f in step)
