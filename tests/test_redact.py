from __future__ import annotations

from cascadestore._redact import redact_for_log
from cascadestore.records import Record


def test_redact_for_log_masks_sensitive_fields() -> None:
    data_hash = {
        "id": "1",
        "password": "pw",
        "api_key": "k",
        "profile": {"accessToken": "abc", "name": "Bo"},
    }

    redacted = redact_for_log(data_hash)

    assert redacted["id"] == "1"
    assert redacted["password"] == "<redacted>"
    assert redacted["api_key"] == "<redacted>"
    assert redacted["profile"] == {"accessToken": "<redacted>", "name": "Bo"}


def test_redact_for_log_truncates_long_strings_in_batches() -> None:
    redacted = redact_for_log([{"bio": "x" * 600}, b"\x00\x01"], max_string=10)

    assert redacted[0]["bio"].startswith("x" * 10)
    assert "<truncated>" in redacted[0]["bio"]
    assert redacted[1] == "<bytes:2b>"


def test_redact_for_log_names_record_types() -> None:
    assert redact_for_log(Record) == "Record"
