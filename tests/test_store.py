import logging

import pytest
from pydantic import ValidationError

from form_builder.config import Settings
from form_builder.schemas.fields import CheckboxField, SelectField
from form_builder.state.model import FormState, PreviewMode, Theme
from form_builder.state.store import FormStore
from form_builder.storage import InMemoryStorage


def test_initial_state(store):
    s = store.state
    assert s.steps == ((),)
    assert s.current_step == 0
    assert s.selected_field_id is None
    assert s.past_length == 0 and s.future_length == 0
    assert s.title == "Untitled Form"
    assert s.form_id is None


def test_add_field_appends_selects_and_checkpoints(store):
    s = store.add_field("text")
    field = s.current_fields[0]
    assert s.selected_field_id == field.id
    assert s.past == (((),),)
    assert s.future == ()


def test_add_field_unknown_kind_is_a_noop(store):
    before = store.state
    assert store.add_field("radio") is before


def test_select_scenario(store):
    store.add_field("select")
    field = store.state.current_fields[0]
    assert isinstance(field, SelectField)
    assert len(field.options) == 2
    assert field.value == ""

    store.update_field(field.id, {"options": ["A"]})
    s = store.update_field(field.id, {"value": "A"})
    assert s.current_fields[0].options == ("A",)
    assert s.current_fields[0].value == "A"


def test_update_field_does_not_checkpoint(store):
    store.add_field("text")
    fid = store.state.current_fields[0].id
    past = store.state.past
    s = store.update_field(fid, {"value": "typed"})
    assert s.past is past
    assert s.current_fields[0].value == "typed"


def test_update_field_unknown_id_or_same_value_is_noop(store):
    store.add_field("text")
    before = store.state
    assert store.update_field("missing", {"label": "x"}) is before
    assert store.update_field(before.current_fields[0].id, {"value": ""}) is before


def test_update_field_keeps_kind(store):
    store.add_field("checkbox")
    fid = store.state.current_fields[0].id
    s = store.update_field(fid, {"type": "text", "value": "on"})
    assert isinstance(s.current_fields[0], CheckboxField)
    assert s.current_fields[0].value is False


def test_remove_field_clears_selection(store):
    store.add_field("text")
    fid = store.state.selected_field_id
    s = store.remove_field(fid)
    assert s.current_fields == ()
    assert s.selected_field_id is None
    assert s.past_length == 2


def test_remove_unknown_field_is_noop(store):
    store.add_field("text")
    before = store.state
    assert store.remove_field("nope") is before


def test_move_field_reorders_and_checkpoints(store):
    for kind in ("text", "select", "date"):
        store.add_field(kind)
    kinds = [f.type for f in store.state.current_fields]
    s = store.move_field(0, 2)
    assert [f.type for f in s.current_fields] == [kinds[1], kinds[2], kinds[0]]
    assert s.past_length == 4


def test_move_field_rejects_bad_indices(store):
    store.add_field("text")
    store.add_field("date")
    before = store.state
    for args in [(0, 0), (-1, 0), (0, 2), (5, 1), ("0", 1), (True, 0), (0.0, 1)]:
        assert store.move_field(*args) is before
    assert store.state.steps is before.steps


def test_add_and_remove_steps(store):
    store.add_step()
    s = store.add_step()
    assert s.step_count == 3

    single = FormStore(store.storage)
    before = single.state
    assert single.remove_step(0) is before
    assert single.state.step_count == 1


def test_remove_step_clamps_current_step(store):
    store.add_step()
    store.add_step()
    store.set_current_step(2)
    s = store.remove_step(2)
    assert s.step_count == 2
    assert s.current_step == 1


def test_remove_step_out_of_range_is_noop(store):
    store.add_step()
    before = store.state
    assert store.remove_step(5) is before
    assert store.remove_step(-1) is before


def test_set_current_step_clears_selection(store):
    store.add_field("text")
    store.add_step()
    s = store.set_current_step(1)
    assert s.current_step == 1
    assert s.selected_field_id is None

    store.set_current_step(0)
    store.select_field(store.state.current_fields[0].id)
    s = store.set_current_step(9)
    assert s.current_step == 0
    assert s.selected_field_id is None


def test_operations_target_current_step_only(store):
    store.add_field("text")
    first_id = store.state.current_fields[0].id
    store.add_step()
    store.set_current_step(1)
    before = store.state
    assert store.update_field(first_id, {"value": "x"}) is before
    assert store.remove_field(first_id) is before


def test_select_field(store):
    store.add_field("text")
    fid = store.state.current_fields[0].id
    store.select_field(None)
    assert store.state.selected_field_id is None
    assert store.select_field(fid).selected_field_id == fid
    before = store.state
    assert store.select_field("unknown") is before


def test_new_containers_on_every_change(store):
    store.add_field("text")
    before = store.state
    s = store.add_field("date")
    assert s.steps is not before.steps
    assert before.current_fields[0] is s.current_fields[0]
    assert len(before.current_fields) == 1


def test_session_settings(store):
    assert store.set_preview_mode("mobile").preview_mode is PreviewMode.MOBILE
    before = store.state
    assert store.set_preview_mode("watch") is before
    assert store.toggle_theme().theme is Theme.DARK
    assert store.toggle_theme().theme is Theme.LIGHT
    assert store.set_title("Survey").title == "Survey"
    assert store.set_description("About you").description == "About you"
    before = store.state
    assert store.set_title(None) is before


def test_reset(store):
    store.add_field("text")
    store.add_step()
    store.set_title("Survey")
    store.toggle_theme()
    s = store.reset()
    assert s.steps == ((),)
    assert s.past == () and s.future == ()
    assert s.title == "Untitled Form"
    assert s.form_id is None
    assert s.theme is Theme.DARK
    assert store.undo() is s


def test_set_field_errors_and_clear_values(store):
    store.add_field("text")
    store.add_field("checkbox")
    text, box = store.state.current_fields
    store.update_field(text.id, {"value": "hi"})
    store.update_field(box.id, {"value": True})

    s = store.set_field_errors({text.id: "Invalid format"})
    assert s.current_fields[0].error == "Invalid format"
    assert s.current_fields[1].error is None

    s = store.clear_values()
    assert all(f.value is None and f.error is None for f in s.current_fields)
    assert store.clear_values() is s


def test_listeners_see_each_published_state(store):
    seen = []
    unsubscribe = store.subscribe(seen.append)
    store.add_field("text")
    store.move_field(0, 0)
    store.add_step()
    unsubscribe()
    store.add_step()
    assert len(seen) == 2
    assert seen[-1].step_count == 2


def test_default_title_from_settings(storage):
    store = FormStore(storage, Settings(default_title="New form"))
    assert store.state.title == "New form"


class _SessionWriteFails(InMemoryStorage):
    def put(self, key, value):
        if key == "form-builder-storage":
            raise OSError("disk full")
        super().put(key, value)


def test_failed_session_write_does_not_break_mutations(caplog):
    store = FormStore(_SessionWriteFails(), Settings(persist_session=True))
    seen = []
    store.subscribe(seen.append)
    with caplog.at_level(logging.WARNING, logger="form_builder"):
        s = store.add_field("text")
    assert len(s.current_fields) == 1
    assert seen == [s]
    assert store.state is s
    assert any('"event":"session.persist_failed"' in r.getMessage() for r in caplog.records)


@pytest.mark.parametrize("kwargs", [{"steps": ()}, {"current_step": 1}, {"current_step": -1}])
def test_form_state_rejects_invalid_step_pointer(kwargs):
    with pytest.raises(ValidationError):
        FormState(**kwargs)
