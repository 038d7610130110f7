"""
Submitted-response log.

Each form keeps an append-only list under `responses-<id>`; every entry is a
flat map of field id -> value stamped with `submittedAt` and a unique `id`.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError

from form_builder.config import Settings
from form_builder.errors import CorruptDocumentError
from form_builder.logging_utils import log_event
from form_builder.schemas.document import (
    FORM_KEY_PREFIX,
    ResponseRecord,
    SavedForm,
    form_key,
    responses_key,
    utc_now_iso,
)
from form_builder.storage import StorageAdapter

logger = logging.getLogger("form_builder.responses")


def _first_label(steps: Any) -> Optional[str]:
    if not isinstance(steps, list) or not steps:
        return None
    first = steps[0]
    if not isinstance(first, list) or not first or not isinstance(first[0], dict):
        return None
    label = first[0].get("label")
    return label if isinstance(label, str) and label else None


class ResponseLog:
    def __init__(self, storage: StorageAdapter, settings: Optional[Settings] = None) -> None:
        self.storage = storage
        self.settings = settings or Settings()

    def _stored_entries(self, form_id: str) -> List[Any]:
        """Raw stored log for `form_id`, or [] when missing or not a list."""
        try:
            raw = self.storage.get(responses_key(form_id))
        except CorruptDocumentError as exc:
            log_event(logger, "responses.unreadable", level=logging.WARNING, form_id=form_id, error=str(exc))
            return []
        if raw is None:
            return []
        if not isinstance(raw, list):
            log_event(logger, "responses.unreadable", level=logging.WARNING, form_id=form_id, error="not a list")
            return []
        return raw

    def get_responses(self, form_id: str) -> List[ResponseRecord]:
        out: List[ResponseRecord] = []
        for i, item in enumerate(self._stored_entries(form_id)):
            try:
                out.append(ResponseRecord.model_validate(item))
            except ValidationError as exc:
                log_event(logger, "responses.skipped", level=logging.WARNING, form_id=form_id, index=i, error=str(exc))
        return out

    def save_response(self, form_id: str, data: Mapping[str, Any]) -> ResponseRecord:
        answers: Dict[str, Any] = {}
        for k, v in data.items():
            if isinstance(v, (str, bool)):
                answers[str(k)] = v
            elif v is not None:
                logger.debug("save_response dropped non-scalar answer for %s", k)
        record = ResponseRecord.model_validate(
            {**answers, "submittedAt": utc_now_iso(), "id": str(uuid.uuid4())}
        )
        # Entries that fail ResponseRecord validation are kept as stored.
        current = self._stored_entries(form_id)
        self.storage.put(responses_key(form_id), current + [record.to_json()])
        log_event(logger, "response.saved", form_id=form_id, response_id=record.id, answers=len(answers))
        return record

    def clear_responses(self, form_id: str) -> None:
        self.storage.remove(responses_key(form_id))
        log_event(logger, "responses.cleared", form_id=form_id)

    def clear_form(self, form_id: str) -> None:
        """Delete a form and all of its responses."""
        self.storage.remove(form_key(form_id))
        self.storage.remove(responses_key(form_id))
        log_event(logger, "form.deleted", form_id=form_id)

    def list_saved_forms(self) -> List[SavedForm]:
        """
        Every stored form, titled by its title, else its first field label, else its id.

        Unreadable entries are skipped.
        """
        forms: List[SavedForm] = []
        for key in self.storage.list_keys(FORM_KEY_PREFIX):
            if key == self.settings.session_key:
                continue
            try:
                payload = self.storage.get(key)
            except CorruptDocumentError as exc:
                log_event(logger, "form.unreadable", level=logging.WARNING, key=key, error=str(exc))
                continue
            if isinstance(payload, list):
                payload = {"steps": payload}
            if not isinstance(payload, dict):
                continue
            form_id = key[len(FORM_KEY_PREFIX) :]
            steps = payload.get("steps") if isinstance(payload.get("steps"), list) else []
            title = payload.get("title") if isinstance(payload.get("title"), str) else None
            forms.append(SavedForm(id=form_id, title=title or _first_label(steps) or form_id, steps=steps))
        return forms
