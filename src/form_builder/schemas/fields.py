"""
Field variant models.

Five closed variants discriminated on `type`. Models are frozen; a field's
kind never changes after creation. Persisted/JSON shapes use camelCase aliases
(`helpText`, `minLength`, `maxLength`) to match the stored documents.
"""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Annotated, Any, Dict, Literal, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from form_builder.errors import UnknownFieldKindError


class FieldKind(str, Enum):
    TEXT = "text"
    TEXTAREA = "textarea"
    SELECT = "select"
    CHECKBOX = "checkbox"
    DATE = "date"


DEFAULT_SELECT_OPTIONS: Tuple[str, ...] = ("Option 1", "Option 2")
_FALLBACK_SELECT_OPTIONS: Tuple[str, ...] = ("Option 1",)

_DEFAULT_PLACEHOLDERS: Dict[FieldKind, str] = {
    FieldKind.TEXT: "Enter text",
    FieldKind.TEXTAREA: "Enter your text here",
    FieldKind.SELECT: "Select an option",
    FieldKind.DATE: "",
}


class FieldBase(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = Field(..., description="Opaque identifier, unique across all steps of a document")
    label: str
    required: bool = False
    help_text: Optional[str] = Field(default=None, alias="helpText")
    # Transient; set by a validation pass and cleared by the next one.
    error: Optional[str] = None

    @property
    def kind(self) -> FieldKind:
        return FieldKind(getattr(self, "type"))


class _StringFieldBase(FieldBase):
    placeholder: Optional[str] = None
    value: Optional[str] = None
    min_length: Optional[int] = Field(default=None, alias="minLength", ge=0)
    max_length: Optional[int] = Field(default=None, alias="maxLength", ge=0)


class TextField(_StringFieldBase):
    type: Literal["text"] = "text"
    pattern: Optional[str] = None


class TextareaField(_StringFieldBase):
    type: Literal["textarea"] = "textarea"
    pattern: Optional[str] = None


class DateField(_StringFieldBase):
    type: Literal["date"] = "date"


class SelectField(FieldBase):
    type: Literal["select"] = "select"
    options: Tuple[str, ...] = Field(..., min_length=1)
    value: Optional[str] = None
    placeholder: Optional[str] = None


class CheckboxField(FieldBase):
    type: Literal["checkbox"] = "checkbox"
    value: Optional[bool] = False


AnyField = Union[TextField, TextareaField, SelectField, CheckboxField, DateField]
FormField = Annotated[AnyField, Field(discriminator="type")]

Step = Tuple[FormField, ...]
Steps = Tuple[Step, ...]

# camelCase keys accepted in partial updates, mapped to attribute names.
_KEY_ALIASES = {
    "helpText": "help_text",
    "minLength": "min_length",
    "maxLength": "max_length",
}
_IMMUTABLE_KEYS = {"id", "type", "kind"}


def coerce_kind(kind: Any) -> FieldKind:
    try:
        return FieldKind(kind)
    except (ValueError, TypeError):
        raise UnknownFieldKindError(kind) from None


def new_field_id() -> str:
    return str(uuid.uuid4())


def create_field(kind: Any) -> AnyField:
    """
    Build a new field of `kind` with a fresh id and kind-appropriate defaults.

    Raises `UnknownFieldKindError` for anything outside `FieldKind`.
    """
    k = coerce_kind(kind)
    base: Dict[str, Any] = {
        "id": new_field_id(),
        "label": f"{k.value.capitalize()} Field",
        "required": False,
    }
    if k is FieldKind.CHECKBOX:
        return CheckboxField(**base, value=False)
    if k is FieldKind.SELECT:
        return SelectField(
            **base,
            placeholder=_DEFAULT_PLACEHOLDERS[k],
            options=DEFAULT_SELECT_OPTIONS,
            value="",
        )
    if k is FieldKind.TEXT:
        return TextField(**base, placeholder=_DEFAULT_PLACEHOLDERS[k], value="")
    if k is FieldKind.TEXTAREA:
        return TextareaField(**base, placeholder=_DEFAULT_PLACEHOLDERS[k], value="")
    if k is FieldKind.DATE:
        return DateField(**base, placeholder=_DEFAULT_PLACEHOLDERS[k], value="")
    raise UnknownFieldKindError(kind)


def _is_optional_str(v: Any) -> bool:
    return v is None or isinstance(v, str)


def _is_length(v: Any) -> bool:
    return v is None or (isinstance(v, int) and not isinstance(v, bool) and v >= 0)


def _coerce_value(existing: AnyField, raw: Any) -> Any:
    kind = existing.kind
    if kind is FieldKind.CHECKBOX:
        return raw if isinstance(raw, bool) else (existing.value or False)
    if kind in (FieldKind.TEXT, FieldKind.TEXTAREA, FieldKind.DATE, FieldKind.SELECT):
        return raw if isinstance(raw, str) else (existing.value or "")
    raise UnknownFieldKindError(kind)


def _coerce_options(existing: SelectField, raw: Any) -> Tuple[str, ...]:
    if isinstance(raw, (list, tuple)) and raw and all(isinstance(o, str) for o in raw):
        return tuple(raw)
    return existing.options or _FALLBACK_SELECT_OPTIONS


def _coerce_attribute(existing: AnyField, key: str, raw: Any) -> Any:
    if key == "value":
        return _coerce_value(existing, raw)
    if key == "options":
        return _coerce_options(existing, raw)  # type: ignore[arg-type]
    if key == "label":
        return raw if isinstance(raw, str) else existing.label
    if key == "required":
        return raw if isinstance(raw, bool) else existing.required
    if key in ("min_length", "max_length"):
        return raw if _is_length(raw) else getattr(existing, key)
    # placeholder, help_text, error, pattern
    return raw if _is_optional_str(raw) else getattr(existing, key)


def merge_field(existing: AnyField, partial: Mapping[str, Any]) -> AnyField:
    """
    Apply a partial update on top of `existing` without ever changing its kind.

    Total: never raises. Unknown keys, `id` and `type`/`kind` are ignored, and
    any attribute with an invalid type falls back to the existing value (or
    the kind's default). Returns `existing` itself when nothing changes.
    """
    if not isinstance(partial, Mapping):
        return existing
    allowed = type(existing).model_fields
    update: Dict[str, Any] = {}
    for raw_key, raw_value in partial.items():
        key = _KEY_ALIASES.get(raw_key, raw_key) if isinstance(raw_key, str) else None
        if key is None or key in _IMMUTABLE_KEYS or key not in allowed:
            continue
        update[key] = _coerce_attribute(existing, key, raw_value)
    if not update:
        return existing
    merged = existing.model_copy(update=update)
    return existing if merged == existing else merged


def field_to_json(field: AnyField, *, include_error: bool = True) -> Dict[str, Any]:
    exclude = None if include_error else {"error"}
    return field.model_dump(mode="json", by_alias=True, exclude_none=True, exclude=exclude)


def steps_to_json(steps: Steps, *, include_error: bool = False) -> list:
    return [[field_to_json(f, include_error=include_error) for f in step] for step in steps]
