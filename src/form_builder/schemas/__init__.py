from form_builder.schemas.document import (
    DOCUMENT_SCHEMA,
    PersistedDocument,
    ResponseRecord,
    SavedForm,
    form_key,
    parse_document,
    responses_key,
)
from form_builder.schemas.fields import (
    AnyField,
    CheckboxField,
    DateField,
    FieldKind,
    FormField,
    SelectField,
    Step,
    Steps,
    TextareaField,
    TextField,
    create_field,
    merge_field,
)

__all__ = [
    "AnyField",
    "CheckboxField",
    "DOCUMENT_SCHEMA",
    "DateField",
    "FieldKind",
    "FormField",
    "PersistedDocument",
    "ResponseRecord",
    "SavedForm",
    "SelectField",
    "Step",
    "Steps",
    "TextField",
    "TextareaField",
    "create_field",
    "form_key",
    "merge_field",
    "parse_document",
    "responses_key",
]
