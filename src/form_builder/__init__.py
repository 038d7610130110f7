"""
Multi-step form builder state library.

- Field variants and persisted shapes: `form_builder.schemas`
- Field validation: `form_builder.validation`
- History-tracked state container: `form_builder.state`
- Storage adapters and the response log: `form_builder.storage`, `form_builder.responses`
"""

from form_builder.config import Settings, load_settings
from form_builder.errors import CorruptDocumentError, FormBuilderError, FormNotFoundError, UnknownFieldKindError
from form_builder.fill_out import FillOutSession
from form_builder.responses import ResponseLog
from form_builder.schemas.fields import FieldKind, FormField, create_field, merge_field
from form_builder.state.store import FormState, FormStore
from form_builder.storage import InMemoryStorage, JsonFileStorage, StorageAdapter
from form_builder.validation import ValidationIssue, validate_step, validate_value

__all__ = [
    "CorruptDocumentError",
    "FieldKind",
    "FillOutSession",
    "FormBuilderError",
    "FormField",
    "FormNotFoundError",
    "FormState",
    "FormStore",
    "InMemoryStorage",
    "JsonFileStorage",
    "ResponseLog",
    "Settings",
    "StorageAdapter",
    "UnknownFieldKindError",
    "ValidationIssue",
    "create_field",
    "load_settings",
    "merge_field",
    "validate_step",
    "validate_value",
]
