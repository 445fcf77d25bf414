from intake_sync.internal_core.contracts import Submission
from intake_sync.internal_core.submission_log import InMemorySubmissionLog, new_submission_id


def test_append_prepends_with_fresh_id_and_unreviewed() -> None:
    log = InMemorySubmissionLog()
    first = log.append("s1", {"firstName": "Anna"})
    second = log.append(None, {"firstName": "Ben"})

    ordered = log.list_newest_first()
    assert [item.id for item in ordered] == [second.id, first.id]
    assert first.id != second.id
    assert second.session_id is None
    assert first.reviewed is False
    assert first.submitted_at


def test_empty_session_id_is_stored_as_null() -> None:
    log = InMemorySubmissionLog()
    assert log.append("", {"x": 1}).session_id is None


def test_toggle_reviewed_flips_and_double_toggle_restores() -> None:
    log = InMemorySubmissionLog()
    sub = log.append("s1", {})

    toggled = log.toggle_reviewed(sub.id)
    assert toggled is not None and toggled.reviewed is True
    restored = log.toggle_reviewed(sub.id)
    assert restored is not None and restored.reviewed is False
    assert log.get(sub.id).submitted_at == sub.submitted_at


def test_toggle_unknown_id_returns_none_and_leaves_log_unchanged() -> None:
    log = InMemorySubmissionLog()
    sub = log.append("s1", {})
    before = [item.model_dump() for item in log.list_newest_first()]

    assert log.toggle_reviewed("missing") is None
    assert [item.model_dump() for item in log.list_newest_first()] == before
    assert log.get(sub.id) is not None


def test_list_by_submitted_at_ignores_insertion_order() -> None:
    log = InMemorySubmissionLog()
    log.append("late", {})
    log.append("early", {})
    # Force timestamps that disagree with insertion order.
    log._entries[0]["submitted_at"] = "2026-01-01T10:00:00+00:00"
    log._entries[1]["submitted_at"] = "2026-01-01T11:00:00+00:00"

    assert [item.session_id for item in log.list_newest_first()] == ["early", "late"]
    assert [item.session_id for item in log.list_by_submitted_at()] == ["late", "early"]


def test_submission_ids_embed_creation_time() -> None:
    millis, _, suffix = new_submission_id().partition("-")
    assert millis.isdigit()
    assert len(suffix) == 32


def test_submission_wire_shape_uses_camel_case() -> None:
    sub = Submission(id="1-a", session_id="s1", data={"k": "v"}, submitted_at="2026-01-01T00:00:00+00:00")
    assert sub.to_wire() == {
        "id": "1-a",
        "sessionId": "s1",
        "data": {"k": "v"},
        "submittedAt": "2026-01-01T00:00:00+00:00",
        "reviewed": False,
    }
