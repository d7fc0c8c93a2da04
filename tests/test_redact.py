from __future__ import annotations

from roadfeed._redact import redact_for_log


def test_redact_for_log_masks_secret_headers_and_params() -> None:
    headers = {"Authorization": "Bearer abc", "accept": "application/json"}
    params = {"auth": "db-secret", "sn": "1"}

    assert redact_for_log(headers) == {"Authorization": "<redacted>", "accept": "application/json"}
    assert redact_for_log(params) == {"auth": "<redacted>", "sn": "1"}


def test_redact_for_log_truncates_long_values() -> None:
    redacted = redact_for_log({"value": "x" * 600}, max_string=10)
    assert redacted["value"].startswith("x" * 10)
    assert redacted["value"].endswith("<truncated>")


def test_redact_for_log_empty() -> None:
    assert redact_for_log(None) == {}
    assert redact_for_log({}) == {}
