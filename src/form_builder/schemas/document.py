"""
Persisted document and response shapes.

Stored documents are validated against `DOCUMENT_SCHEMA` (JSON Schema draft
2020-12) before being parsed into models, so a corrupt payload is reported
with the path of the first offending value.
"""

from __future__ import annotations

from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict, List, Optional

import jsonschema
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from form_builder.errors import CorruptDocumentError
from form_builder.schemas.fields import Steps, steps_to_json

FORM_KEY_PREFIX = "form-"
RESPONSES_KEY_PREFIX = "responses-"

_OPTIONAL_STRING = {"type": ["string", "null"]}
_OPTIONAL_LENGTH = {"type": ["integer", "null"], "minimum": 0}

_FIELD_COMMON = {
    "id": {"type": "string"},
    "label": {"type": "string"},
    "required": {"type": "boolean"},
    "helpText": _OPTIONAL_STRING,
    "error": _OPTIONAL_STRING,
}

FIELD_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["id", "type", "label"],
    "properties": {**_FIELD_COMMON, "type": {"enum": ["text", "textarea", "select", "checkbox", "date"]}},
    "allOf": [
        {
            "if": {"properties": {"type": {"enum": ["text", "textarea", "date"]}}},
            "then": {
                "properties": {
                    "value": _OPTIONAL_STRING,
                    "placeholder": _OPTIONAL_STRING,
                    "minLength": _OPTIONAL_LENGTH,
                    "maxLength": _OPTIONAL_LENGTH,
                    "pattern": _OPTIONAL_STRING,
                }
            },
        },
        {
            "if": {"properties": {"type": {"const": "select"}}},
            "then": {
                "required": ["options"],
                "properties": {
                    "options": {"type": "array", "items": {"type": "string"}, "minItems": 1},
                    "value": _OPTIONAL_STRING,
                    "placeholder": _OPTIONAL_STRING,
                },
            },
        },
        {
            "if": {"properties": {"type": {"const": "checkbox"}}},
            "then": {"properties": {"value": {"type": ["boolean", "null"]}}},
        },
    ],
}

STEPS_SCHEMA: Dict[str, Any] = {
    "type": "array",
    "minItems": 1,
    "items": {"type": "array", "items": FIELD_SCHEMA},
}

DOCUMENT_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["steps"],
    "properties": {
        "steps": STEPS_SCHEMA,
        "title": _OPTIONAL_STRING,
        "description": _OPTIONAL_STRING,
        "createdAt": _OPTIONAL_STRING,
        "updatedAt": _OPTIONAL_STRING,
    },
}


def form_key(form_id: str) -> str:
    return f"{FORM_KEY_PREFIX}{form_id}"


def responses_key(form_id: str) -> str:
    return f"{RESPONSES_KEY_PREFIX}{form_id}"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@lru_cache(maxsize=1)
def _document_validator() -> jsonschema.Validator:
    jsonschema.Draft202012Validator.check_schema(DOCUMENT_SCHEMA)
    return jsonschema.Draft202012Validator(DOCUMENT_SCHEMA)


class PersistedDocument(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    steps: Steps
    title: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[str] = Field(default=None, alias="createdAt")
    updated_at: Optional[str] = Field(default=None, alias="updatedAt")

    def to_json(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "steps": steps_to_json(self.steps),
            "title": self.title or "",
            "description": self.description or "",
        }
        if self.created_at:
            out["createdAt"] = self.created_at
        if self.updated_at:
            out["updatedAt"] = self.updated_at
        return out


def _duplicate_field_id(steps: Steps) -> Optional[str]:
    seen = set()
    for step in steps:
        for f in step:
            if f.id in seen:
                return f.id
            seen.add(f.id)
    return None


def parse_document(key: str, payload: Any) -> PersistedDocument:
    """
    Validate and parse a stored document payload.

    A bare list is accepted as a legacy payload holding only the steps.
    Raises `CorruptDocumentError` if the payload does not match the document shape.
    """
    if isinstance(payload, list):
        payload = {"steps": payload}

    errors = sorted(_document_validator().iter_errors(payload), key=lambda e: list(e.path))
    if errors:
        e0 = errors[0]
        path = "/".join(str(p) for p in e0.path) or "<root>"
        raise CorruptDocumentError(key, e0.message, path=path)

    try:
        doc = PersistedDocument.model_validate(payload)
    except ValidationError as exc:
        first = exc.errors()[0]
        path = "/".join(str(p) for p in first.get("loc", ())) or "<root>"
        raise CorruptDocumentError(key, str(first.get("msg") or "invalid document"), path=path) from exc

    dup = _duplicate_field_id(doc.steps)
    if dup is not None:
        raise CorruptDocumentError(key, f"duplicate field id {dup!r}", path="steps")
    return doc


class ResponseRecord(BaseModel):
    """One submitted response: field id -> value, stamped with `submittedAt` and `id`."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str
    submitted_at: str = Field(..., alias="submittedAt")

    def answers(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})

    def to_json(self) -> Dict[str, Any]:
        return {**self.answers(), "submittedAt": self.submitted_at, "id": self.id}


class SavedForm(BaseModel):
    id: str
    title: str
    steps: List[Any] = Field(default_factory=list)
