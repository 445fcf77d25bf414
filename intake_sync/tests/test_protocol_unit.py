import json

from intake_sync.realtime import protocol


def test_decode_message_accepts_envelope() -> None:
    message = protocol.decode_message(json.dumps({"event": "input-change", "data": {"sessionId": "s1"}}))
    assert message is not None
    assert message.event == "input-change"
    assert message.data == {"sessionId": "s1"}


def test_decode_message_rejects_malformed_frames() -> None:
    assert protocol.decode_message("not json") is None
    assert protocol.decode_message(json.dumps(["input-change", {}])) is None
    assert protocol.decode_message(json.dumps({"data": {}})) is None
    assert protocol.decode_message(json.dumps({"event": "  "})) is None
    assert protocol.decode_message(b"\x00\x01garbage") is None
    assert protocol.decode_message(b"\xff\xfe") is None


def test_split_draft_payload_detects_legacy_shape() -> None:
    assert protocol.split_draft_payload({"sessionId": "s1", "data": {"a": 1}}) == ("s1", {"a": 1})
    assert protocol.split_draft_payload({"firstName": "Anna"}) == ("", {"firstName": "Anna"})
    assert protocol.split_draft_payload({"sessionId": "", "data": {}}) == ("", {"sessionId": "", "data": {}})
    assert protocol.split_draft_payload({"sessionId": 42, "data": {}})[0] == ""


def test_split_submit_payload_tolerates_missing_session_and_bare_data() -> None:
    assert protocol.split_submit_payload({"sessionId": "s1", "data": {"a": 1}}) == ("s1", {"a": 1})
    assert protocol.split_submit_payload({"data": {"a": 1}}) == (None, {"a": 1})
    assert protocol.split_submit_payload({"firstName": "Anna"}) == (None, {"firstName": "Anna"})


def test_review_target_requires_string_id() -> None:
    assert protocol.review_target_from("123-abc") == "123-abc"
    assert protocol.review_target_from("   ") == ""
    assert protocol.review_target_from({"id": "123-abc"}) == ""
    assert protocol.review_target_from(None) == ""


def test_session_channel_key() -> None:
    assert protocol.session_channel("s1") == "session:s1"


def test_decode_message_accepts_utf8_bytes() -> None:
    message = protocol.decode_message(json.dumps({"event": "leave-session", "data": None}).encode("utf-8"))
    assert message is not None
    assert message.event == "leave-session"


def test_session_id_is_kept_verbatim() -> None:
    assert protocol.session_id_from({"sessionId": "s1 "}) == "s1 "
    assert protocol.session_id_from({"sessionId": "s1"}) == "s1"
    assert protocol.session_id_from({"sessionId": "   "}) == ""
    assert protocol.review_target_from(" 123-abc ") == " 123-abc "
