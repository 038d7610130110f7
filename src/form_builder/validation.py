"""
Field validation.

`validate_value` checks, in order, stopping at the first failure:
  1. required (None, "" and False count as empty)
  2. min length, then max length (non-empty string values only)
  3. pattern (text/textarea only, non-empty values only)

An empty optional field never reports a length or pattern error.
"""

from __future__ import annotations

import re
from enum import Enum
from functools import lru_cache
from typing import Any, Dict, Iterable, Mapping, Optional

from pydantic import BaseModel, ConfigDict

from form_builder.errors import UnknownFieldKindError
from form_builder.schemas.fields import AnyField, FieldKind

_CONSENT_MARKERS = ("terms", "agree")
_MISSING = object()


class IssueCode(str, Enum):
    REQUIRED = "required"
    TOO_SHORT = "too_short"
    TOO_LONG = "too_long"
    INVALID_FORMAT = "invalid_format"
    INVALID_PATTERN = "invalid_pattern"


class ValidationIssue(BaseModel):
    model_config = ConfigDict(frozen=True)

    field_id: str
    code: IssueCode
    message: str


def is_empty(value: Any) -> bool:
    return value is None or value == "" or value is False


@lru_cache(maxsize=256)
def _compile(pattern: str) -> Optional[re.Pattern]:
    try:
        return re.compile(pattern)
    except re.error:
        return None


def _pattern_for(field: AnyField) -> Optional[str]:
    kind = field.kind
    if kind in (FieldKind.TEXT, FieldKind.TEXTAREA):
        return field.pattern  # type: ignore[union-attr]
    if kind in (FieldKind.SELECT, FieldKind.CHECKBOX, FieldKind.DATE):
        return None
    raise UnknownFieldKindError(kind)


def _length_bounds(field: AnyField) -> tuple[Optional[int], Optional[int]]:
    kind = field.kind
    if kind in (FieldKind.TEXT, FieldKind.TEXTAREA, FieldKind.DATE):
        return field.min_length, field.max_length  # type: ignore[union-attr]
    if kind in (FieldKind.SELECT, FieldKind.CHECKBOX):
        return None, None
    raise UnknownFieldKindError(kind)


def validate_value(field: AnyField, value: Any = _MISSING) -> Optional[ValidationIssue]:
    """Return the first issue for `value` (defaults to the field's own value), or None."""
    if value is _MISSING:
        value = field.value

    if is_empty(value):
        if field.required:
            return ValidationIssue(field_id=field.id, code=IssueCode.REQUIRED, message="This field is required")
        return None

    if not isinstance(value, str):
        return None

    min_length, max_length = _length_bounds(field)
    if min_length is not None and len(value) < min_length:
        return ValidationIssue(field_id=field.id, code=IssueCode.TOO_SHORT, message=f"Minimum length is {min_length}")
    if max_length is not None and len(value) > max_length:
        return ValidationIssue(field_id=field.id, code=IssueCode.TOO_LONG, message=f"Maximum length is {max_length}")

    pattern = _pattern_for(field)
    if pattern:
        regex = _compile(pattern)
        if regex is None:
            return ValidationIssue(field_id=field.id, code=IssueCode.INVALID_PATTERN, message="Invalid regex pattern")
        if not regex.search(value):
            return ValidationIssue(field_id=field.id, code=IssueCode.INVALID_FORMAT, message="Invalid format")
    return None


def is_consent_field(field: AnyField) -> bool:
    """Terms/consent checkboxes, recognised by "terms" or "agree" in the label or id."""
    label = (field.label or "").lower()
    fid = (field.id or "").lower()
    return any(m in label or m in fid for m in _CONSENT_MARKERS)


def validate_step(
    fields: Iterable[AnyField],
    values: Optional[Mapping[str, Any]] = None,
    *,
    is_submission: bool = False,
) -> Dict[str, ValidationIssue]:
    """
    Validate one step of a guided fill-out.

    Consent fields are only required when the final step is being submitted,
    so a trailing terms checkbox does not block earlier steps. Values missing
    from `values` are read from the fields themselves.
    """
    issues: Dict[str, ValidationIssue] = {}
    for field in fields:
        value = values.get(field.id, field.value) if values is not None else field.value
        if field.required and not is_submission and is_consent_field(field) and is_empty(value):
            continue
        issue = validate_value(field, value)
        if issue is not None:
            issues[field.id] = issue
    return issues
