"""
Guided multi-step fill-out of a saved form.

Values are written through the store (`update_field`), validation messages are
written onto the current step's fields, and the final step's submission is
appended to the form's response log.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field

from form_builder.errors import FormNotFoundError
from form_builder.responses import ResponseLog
from form_builder.schemas.document import ResponseRecord
from form_builder.state.store import FormStore
from form_builder.validation import ValidationIssue, is_empty, validate_step, validate_value

logger = logging.getLogger("form_builder.fill_out")


class SubmitOutcome(BaseModel):
    status: Literal["invalid", "advanced", "submitted"]
    issues: Dict[str, ValidationIssue] = Field(default_factory=dict)
    response: Optional[ResponseRecord] = None


class FillOutSession:
    def __init__(self, store: FormStore, responses: Optional[ResponseLog] = None) -> None:
        self.store = store
        self.responses = responses or ResponseLog(store.storage, store.settings)

    @property
    def form_id(self) -> Optional[str]:
        return self.store.state.form_id

    @property
    def current_step(self) -> int:
        return self.store.state.current_step

    @property
    def is_last_step(self) -> bool:
        s = self.store.state
        return s.current_step == len(s.steps) - 1

    def open(self, form_id: str) -> None:
        """Load `form_id` into the store. Raises `FormNotFoundError` if nothing is stored."""
        if not self.store.load(form_id):
            raise FormNotFoundError(form_id)

    def values(self) -> Dict[str, Any]:
        """Current answers across all steps, without unset values."""
        return {f.id: f.value for f in self.store.state.all_fields() if f.value is not None}

    def set_value(self, field_id: str, value: Any) -> Optional[ValidationIssue]:
        self.store.update_field(field_id, {"value": value})
        field = self.store.state.find_field(field_id)
        if field is None:
            return None
        issue = validate_value(field)
        self.store.update_field(field_id, {"error": issue.message if issue else None})
        return issue

    def progress(self) -> float:
        """Percentage (0-100) of fields in the whole form holding a non-empty value."""
        fields = self.store.state.all_fields()
        if not fields:
            return 0.0
        filled = sum(1 for f in fields if not is_empty(f.value))
        return filled / len(fields) * 100

    def check_current_step(self, *, is_submission: bool = False) -> Dict[str, ValidationIssue]:
        return validate_step(self.store.state.current_fields, is_submission=is_submission)

    def validate_current_step(self, *, is_submission: bool = False) -> Dict[str, ValidationIssue]:
        issues = self.check_current_step(is_submission=is_submission)
        self.store.set_field_errors({fid: issue.message for fid, issue in issues.items()})
        return issues

    def can_go_to(self, index: int) -> bool:
        """Going back is always allowed; going forward needs a valid current step."""
        if index <= self.current_step:
            return True
        return not self.check_current_step()

    def go_to(self, index: int) -> bool:
        if not self.can_go_to(index):
            return False
        return self.store.set_current_step(index).current_step == index

    def submit(self) -> SubmitOutcome:
        """
        Validate the current step, then advance, or on the last step save a response.

        After a successful submission every value is cleared and the session
        returns to the first step.
        """
        form_id = self.form_id
        if not form_id:
            raise FormNotFoundError(None)

        is_submission = self.is_last_step
        issues = self.validate_current_step(is_submission=is_submission)
        if issues:
            logger.info("step %d of %s has %d invalid field(s)", self.current_step, form_id, len(issues))
            return SubmitOutcome(status="invalid", issues=issues)

        if not is_submission:
            self.store.set_current_step(self.current_step + 1)
            return SubmitOutcome(status="advanced")

        record = self.responses.save_response(form_id, self.values())
        self.store.clear_values()
        self.store.set_current_step(0)
        return SubmitOutcome(status="submitted", response=record)
