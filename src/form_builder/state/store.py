"""
History-tracked form state container.

`FormStore` owns the single authoritative `FormState`. Every operation
computes a new immutable state and publishes it, or returns the current state
object unchanged when its preconditions do not hold (unknown id, bad index,
nothing to undo, ...). Malformed arguments never raise; only a corrupt stored
document on `load` does.

Structural edits (add/remove/move field, add/remove step) checkpoint the
pre-edit steps into the undo history. Value edits through `update_field` do
not, so typing into a field does not flood the history.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from form_builder.config import Settings
from form_builder.errors import CorruptDocumentError, UnknownFieldKindError
from form_builder.logging_utils import log_event
from form_builder.schemas.document import PersistedDocument, form_key, parse_document, utc_now_iso
from form_builder.schemas.fields import AnyField, Step, Steps, create_field, merge_field, new_field_id
from form_builder.state import history
from form_builder.state.model import EMPTY_STEPS, FormState, PreviewMode, Theme
from form_builder.storage import StorageAdapter, storage_from_settings

logger = logging.getLogger("form_builder.store")

Listener = Callable[[FormState], None]


def _is_index(v: Any) -> bool:
    return isinstance(v, int) and not isinstance(v, bool)


def _replace_step(steps: Steps, index: int, step: Step) -> Steps:
    return steps[:index] + (tuple(step),) + steps[index + 1 :]


def _index_of(step: Step, field_id: Any) -> int:
    for i, f in enumerate(step):
        if f.id == field_id:
            return i
    return -1


class FormStore:
    def __init__(
        self,
        storage: Optional[StorageAdapter] = None,
        settings: Optional[Settings] = None,
        *,
        initial: Optional[FormState] = None,
    ) -> None:
        self.settings = settings or Settings()
        self.storage = storage if storage is not None else storage_from_settings(self.settings)
        self._state = initial if initial is not None else FormState(title=self.settings.default_title)
        self._listeners: List[Listener] = []

    @property
    def state(self) -> FormState:
        return self._state

    @property
    def history_limit(self) -> int:
        return self.settings.history_limit

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call `listener(state)` after every published change. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, new: FormState, action: str) -> FormState:
        if new is self._state:
            return new
        self._state = new
        logger.debug("%s -> steps=%d current=%d past=%d future=%d", action, len(new.steps), new.current_step, len(new.past), len(new.future))
        if self.settings.persist_session:
            try:
                self.persist_session()
            except (OSError, TypeError, ValueError) as exc:
                log_event(logger, "session.persist_failed", level=logging.WARNING, action=action, error=str(exc))
        for listener in list(self._listeners):
            listener(new)
        return new

    def _ignore(self, action: str, reason: str, **details: Any) -> FormState:
        logger.debug("%s ignored: %s %s", action, reason, details or "")
        return self._state

    def _apply(self, action: str, update: Dict[str, Any], *, checkpoint: bool = False) -> FormState:
        s = self._state
        if checkpoint:
            update = {**history.checkpoint(s, self.history_limit), **update}
        return self._publish(s.model_copy(update=update), action)

    # Fields

    def add_field(self, kind: Any) -> FormState:
        try:
            field = create_field(kind)
        except UnknownFieldKindError:
            logger.warning("add_field ignored: unsupported field type %r", kind)
            return self._state
        s = self._state
        steps = _replace_step(s.steps, s.current_step, s.current_fields + (field,))
        return self._apply("add_field", {"steps": steps, "selected_field_id": field.id}, checkpoint=True)

    def remove_field(self, field_id: Any) -> FormState:
        s = self._state
        idx = _index_of(s.current_fields, field_id)
        if idx < 0:
            return self._ignore("remove_field", "unknown field", field_id=field_id)
        step = s.current_fields[:idx] + s.current_fields[idx + 1 :]
        selected = None if s.selected_field_id == field_id else s.selected_field_id
        return self._apply(
            "remove_field",
            {"steps": _replace_step(s.steps, s.current_step, step), "selected_field_id": selected},
            checkpoint=True,
        )

    def update_field(self, field_id: Any, partial: Mapping[str, Any]) -> FormState:
        s = self._state
        idx = _index_of(s.current_fields, field_id)
        if idx < 0:
            return self._ignore("update_field", "unknown field", field_id=field_id)
        existing = s.current_fields[idx]
        merged = merge_field(existing, partial)
        if merged is existing:
            return self._state
        step = s.current_fields[:idx] + (merged,) + s.current_fields[idx + 1 :]
        return self._apply("update_field", {"steps": _replace_step(s.steps, s.current_step, step)})

    def move_field(self, from_index: Any, to_index: Any) -> FormState:
        s = self._state
        current = list(s.current_fields)
        n = len(current)
        if not (_is_index(from_index) and _is_index(to_index)):
            return self._ignore("move_field", "non-integer index", from_index=from_index, to_index=to_index)
        if from_index == to_index or not (0 <= from_index < n and 0 <= to_index < n):
            return self._ignore("move_field", "index out of range", from_index=from_index, to_index=to_index)
        moved = current.pop(from_index)
        current.insert(to_index, moved)
        return self._apply("move_field", {"steps": _replace_step(s.steps, s.current_step, tuple(current))}, checkpoint=True)

    def select_field(self, field_id: Optional[str]) -> FormState:
        s = self._state
        if field_id is not None and _index_of(s.current_fields, field_id) < 0:
            return self._ignore("select_field", "unknown field", field_id=field_id)
        if field_id == s.selected_field_id:
            return s
        return self._apply("select_field", {"selected_field_id": field_id})

    def set_field_errors(self, errors: Mapping[str, Optional[str]]) -> FormState:
        """Write validation messages onto the current step's fields; fields not in `errors` are cleared."""
        s = self._state
        if not isinstance(errors, Mapping):
            return self._ignore("set_field_errors", "errors is not a mapping")
        changed = False
        step: List[AnyField] = []
        for f in s.current_fields:
            msg = errors.get(f.id)
            if not isinstance(msg, str):
                msg = None
            if msg != f.error:
                f = f.model_copy(update={"error": msg})
                changed = True
            step.append(f)
        if not changed:
            return s
        return self._apply("set_field_errors", {"steps": _replace_step(s.steps, s.current_step, tuple(step))})

    def clear_values(self) -> FormState:
        """Clear every field's value and error across all steps."""
        s = self._state
        changed = False
        steps = []
        for step in s.steps:
            new_step = []
            for f in step:
                if f.value is not None or f.error is not None:
                    f = f.model_copy(update={"value": None, "error": None})
                    changed = True
                new_step.append(f)
            steps.append(tuple(new_step))
        if not changed:
            return s
        return self._apply("clear_values", {"steps": tuple(steps)})

    # Steps

    def add_step(self) -> FormState:
        s = self._state
        return self._apply("add_step", {"steps": s.steps + ((),)}, checkpoint=True)

    def remove_step(self, index: Any) -> FormState:
        s = self._state
        if len(s.steps) <= 1:
            return self._ignore("remove_step", "last step cannot be removed")
        if not _is_index(index) or not 0 <= index < len(s.steps):
            return self._ignore("remove_step", "index out of range", index=index)
        steps = s.steps[:index] + s.steps[index + 1 :]
        current = s.current_step if s.current_step < len(steps) else len(steps) - 1
        selected = s.selected_field_id if _index_of(steps[current], s.selected_field_id) >= 0 else None
        return self._apply(
            "remove_step",
            {"steps": steps, "current_step": current, "selected_field_id": selected},
            checkpoint=True,
        )

    def set_current_step(self, index: Any) -> FormState:
        s = self._state
        in_range = _is_index(index) and 0 <= index < len(s.steps)
        current = index if in_range else s.current_step
        if current == s.current_step and s.selected_field_id is None:
            return s
        return self._apply("set_current_step", {"current_step": current, "selected_field_id": None})

    # History

    def undo(self) -> FormState:
        update = history.undo(self._state, self.history_limit)
        if update is None:
            return self._ignore("undo", "nothing to undo")
        return self._apply("undo", update)

    def redo(self) -> FormState:
        update = history.redo(self._state, self.history_limit)
        if update is None:
            return self._ignore("redo", "nothing to redo")
        return self._apply("redo", update)

    def reset(self) -> FormState:
        """Back to a single empty step. Clears history too, so this cannot be undone."""
        return self._apply(
            "reset",
            {
                "steps": EMPTY_STEPS,
                "current_step": 0,
                "selected_field_id": None,
                "past": (),
                "future": (),
                "form_id": None,
                "title": self.settings.default_title,
                "description": "",
            },
        )

    # Session

    def set_title(self, title: Any) -> FormState:
        if not isinstance(title, str) or title == self._state.title:
            return self._state
        return self._apply("set_title", {"title": title})

    def set_description(self, description: Any) -> FormState:
        if not isinstance(description, str) or description == self._state.description:
            return self._state
        return self._apply("set_description", {"description": description})

    def set_preview_mode(self, mode: Any) -> FormState:
        try:
            new_mode = PreviewMode(mode)
        except (ValueError, TypeError):
            return self._ignore("set_preview_mode", "unknown mode", mode=mode)
        if new_mode is self._state.preview_mode:
            return self._state
        return self._apply("set_preview_mode", {"preview_mode": new_mode})

    def toggle_theme(self) -> FormState:
        theme = Theme.DARK if self._state.theme is Theme.LIGHT else Theme.LIGHT
        return self._apply("toggle_theme", {"theme": theme})

    # Persistence

    def to_document(self, *, created_at: Optional[str] = None, updated_at: Optional[str] = None) -> PersistedDocument:
        s = self._state
        return PersistedDocument(
            steps=s.steps,
            title=s.title,
            description=s.description,
            created_at=created_at,
            updated_at=updated_at,
        )

    def generate_id(self) -> str:
        """Allocate a new form id and store the current document under it."""
        form_id = new_field_id()
        key = form_key(form_id)
        self.storage.put(key, self.to_document(created_at=utc_now_iso()).to_json())
        log_event(logger, "form.created", form_id=form_id, steps=len(self._state.steps))
        self._apply("generate_id", {"form_id": form_id})
        return form_id

    def save(self) -> bool:
        form_id = self._state.form_id
        if not form_id:
            return False
        key = form_key(form_id)
        created_at = None
        try:
            stored = self.storage.get(key)
        except CorruptDocumentError as exc:
            log_event(logger, "form.overwrite_corrupt", level=logging.WARNING, form_id=form_id, error=str(exc))
            stored = None
        if isinstance(stored, dict) and isinstance(stored.get("createdAt"), str):
            created_at = stored["createdAt"]
        self.storage.put(key, self.to_document(created_at=created_at, updated_at=utc_now_iso()).to_json())
        log_event(logger, "form.saved", form_id=form_id, steps=len(self._state.steps))
        return True

    def load(self, form_id: Any) -> bool:
        """
        Replace the document with the one stored under `form_id`.

        Returns False if nothing is stored there. Raises `CorruptDocumentError`
        (leaving the current state untouched) if the stored payload is not a
        valid document.
        """
        if not isinstance(form_id, str) or not form_id:
            return False
        key = form_key(form_id)
        payload = self.storage.get(key)
        if payload is None:
            log_event(logger, "form.missing", level=logging.WARNING, form_id=form_id)
            return False
        try:
            doc = parse_document(key, payload)
        except CorruptDocumentError as exc:
            log_event(logger, "form.corrupt", level=logging.ERROR, form_id=form_id, error=str(exc))
            raise
        self._apply(
            "load",
            {
                "steps": doc.steps,
                "form_id": form_id,
                "current_step": 0,
                "selected_field_id": None,
                "title": doc.title or self.settings.default_title,
                "description": doc.description or "",
                "past": (),
                "future": (),
            },
        )
        log_event(logger, "form.loaded", form_id=form_id, steps=len(doc.steps))
        return True

    def persist_session(self) -> None:
        """Store the session subset (document, theme, preview mode, form id) under the session key."""
        s = self._state
        payload = self.to_document().to_json()
        payload.update({"theme": s.theme.value, "previewMode": s.preview_mode.value, "formId": s.form_id})
        self.storage.put(self.settings.session_key, payload)

    def rehydrate_session(self) -> bool:
        key = self.settings.session_key
        try:
            payload = self.storage.get(key)
            if payload is None:
                return False
            doc = parse_document(key, payload)
        except CorruptDocumentError as exc:
            log_event(logger, "session.discarded", level=logging.WARNING, key=key, error=str(exc))
            return False

        s = self._state
        update: Dict[str, Any] = {
            "steps": doc.steps,
            "current_step": 0,
            "selected_field_id": None,
            "past": (),
            "future": (),
            "title": doc.title or self.settings.default_title,
            "description": doc.description or "",
        }
        raw_theme = payload.get("theme") if isinstance(payload, dict) else None
        raw_mode = payload.get("previewMode") if isinstance(payload, dict) else None
        raw_form_id = payload.get("formId") if isinstance(payload, dict) else None
        update["theme"] = Theme(raw_theme) if raw_theme in [t.value for t in Theme] else s.theme
        update["preview_mode"] = PreviewMode(raw_mode) if raw_mode in [m.value for m in PreviewMode] else s.preview_mode
        update["form_id"] = raw_form_id if isinstance(raw_form_id, str) and raw_form_id else None
        self._apply("rehydrate_session", update)
        return True
