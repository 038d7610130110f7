import pytest

from form_builder.errors import FormNotFoundError
from form_builder.fill_out import FillOutSession
from form_builder.state.store import FormStore


def _saved_form(storage):
    storage.put(
        "form-f1",
        {
            "steps": [
                [{"id": "name", "type": "text", "label": "Name", "required": True, "minLength": 2}],
                [
                    {"id": "color", "type": "select", "label": "Color", "options": ["Red", "Blue"]},
                    {"id": "terms", "type": "checkbox", "label": "I agree to the terms", "required": True},
                ],
            ],
            "title": "Signup",
            "description": "",
        },
    )


@pytest.fixture
def session(storage):
    _saved_form(storage)
    s = FillOutSession(FormStore(storage))
    s.open("f1")
    return s


def test_open_missing_form_raises(storage):
    with pytest.raises(FormNotFoundError):
        FillOutSession(FormStore(storage)).open("missing")


def test_submit_blocks_invalid_step_and_marks_errors(session):
    outcome = session.submit()
    assert outcome.status == "invalid"
    assert list(outcome.issues) == ["name"]
    assert session.store.state.current_fields[0].error == "This field is required"
    assert session.current_step == 0


def test_set_value_validates_field(session):
    issue = session.set_value("name", "A")
    assert issue.message == "Minimum length is 2"
    assert session.store.state.current_fields[0].error == "Minimum length is 2"
    assert session.set_value("name", "Ada") is None
    assert session.store.state.current_fields[0].error is None


def test_navigation_guard(session):
    assert session.can_go_to(0)
    assert not session.can_go_to(1)
    assert session.go_to(1) is False
    session.set_value("name", "Ada")
    assert session.go_to(1) is True
    assert session.go_to(0) is True


def test_consent_deferred_until_final_submission(session):
    session.set_value("name", "Ada")
    assert session.submit().status == "advanced"
    assert session.is_last_step

    outcome = session.submit()
    assert outcome.status == "invalid"
    assert list(outcome.issues) == ["terms"]

    session.set_value("terms", True)
    session.set_value("color", "Blue")
    assert session.progress() == pytest.approx(100.0)

    outcome = session.submit()
    assert outcome.status == "submitted"
    assert outcome.response.answers() == {"name": "Ada", "color": "Blue", "terms": True}
    assert session.current_step == 0
    assert session.values() == {}
    assert session.progress() == 0.0

    saved = session.responses.get_responses("f1")
    assert len(saved) == 1 and saved[0].id == outcome.response.id


def test_progress_counts_filled_fields(session):
    assert session.progress() == 0.0
    session.set_value("name", "Ada")
    assert session.progress() == pytest.approx(100 / 3)


def test_submit_without_open_form_raises(storage):
    with pytest.raises(FormNotFoundError):
        FillOutSession(FormStore(storage)).submit()
