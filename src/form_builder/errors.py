from __future__ import annotations

from typing import Optional


class FormBuilderError(Exception):
    """Base class for errors raised by the form builder library."""


class UnknownFieldKindError(FormBuilderError, ValueError):
    def __init__(self, kind: object) -> None:
        super().__init__(f"Unsupported field type: {kind!r}")
        self.kind = kind


class CorruptDocumentError(FormBuilderError, ValueError):
    """
    Persisted data under `key` does not match the document shape.

    Raised by `FormStore.load` (and by file storage on unreadable JSON); the
    in-memory state is never touched when this is raised.
    """

    def __init__(self, key: str, reason: str, *, path: Optional[str] = None) -> None:
        where = f" at {path}" if path else ""
        super().__init__(f"Corrupt document {key!r}{where}: {reason}")
        self.key = key
        self.reason = reason
        self.path = path


class FormNotFoundError(FormBuilderError, LookupError):
    def __init__(self, form_id: Optional[str]) -> None:
        super().__init__(f"Form not found: {form_id!r}" if form_id else "No form is open")
        self.form_id = form_id
