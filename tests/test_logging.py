"""Tests for logging configuration and log-field helpers."""

import json
import logging

import pytest
import structlog

from dexrelay.logging import (
    ErrorType,
    configure_logging,
    redact_authorization,
    truncate_body,
)


@pytest.fixture(autouse=True)
def reset_structlog():
    """Undo configure_logging() so later tests don't log into a closed capture."""
    yield
    structlog.reset_defaults()


class TestRedactAuthorization:
    def test_bearer_signature_hidden(self):
        result = redact_authorization({"authorization": "Bearer 0xdeadbeefcafebabe"})
        assert result == {"authorization": "Bearer ***"}

    def test_header_name_matched_case_insensitively(self):
        result = redact_authorization({"Authorization": "Bearer 0xabcdef"})
        assert result == {"Authorization": "Bearer ***"}

    def test_value_without_scheme_fully_hidden(self):
        assert redact_authorization({"authorization": "0xabc"}) == {"authorization": "***"}

    def test_other_headers_untouched(self):
        headers = {"Content-Type": "application/json"}
        assert redact_authorization(headers) == headers

    def test_input_not_mutated(self):
        headers = {"authorization": "Bearer 0xabc"}
        redact_authorization(headers)
        assert headers == {"authorization": "Bearer 0xabc"}


class TestTruncateBody:
    def test_small_body_unchanged(self):
        assert truncate_body('{"errors": []}') == '{"errors": []}'

    def test_truncates_past_limit(self):
        result = truncate_body("x" * 1500)
        assert result.startswith("x" * 1024)
        assert result.endswith("[TRUNCATED 476 chars]")

    def test_body_at_limit_not_truncated(self):
        body = "x" * 1024
        assert truncate_body(body) == body

    def test_custom_max_size(self):
        assert truncate_body("x" * 15, max_size=10) == "x" * 10 + "... [TRUNCATED 5 chars]"


class TestErrorType:
    def test_transport_error_types(self):
        assert ErrorType.API_TIMEOUT == "API_TIMEOUT"
        assert ErrorType.API_ERROR == "API_ERROR"
        assert ErrorType.API_CONNECTION_FAILED == "API_CONNECTION_FAILED"

    def test_signing_and_registry_error_types(self):
        assert ErrorType.SIGNING_FAILED == "SIGNING_FAILED"
        assert ErrorType.PERMISSION_REVERTED == "PERMISSION_REVERTED"


class TestConfigureLogging:
    def test_json_output_format(self, capsys):
        configure_logging(json_output=True)
        structlog.get_logger("dexrelay.api").info("order submitted", order_id="0x1")

        parsed = json.loads(capsys.readouterr().out.strip())
        assert parsed["event"] == "order submitted"
        assert parsed["order_id"] == "0x1"
        assert parsed["level"] == "info"
        assert parsed["timestamp"].endswith("Z")

    def test_console_output(self, capsys):
        configure_logging(json_output=False)
        structlog.get_logger().info("relay ready")
        assert "relay ready" in capsys.readouterr().out

    def test_debug_filtered_at_default_level(self, capsys):
        configure_logging(json_output=True)
        structlog.get_logger().debug("Sending request")
        assert capsys.readouterr().out == ""

    def test_debug_emitted_when_requested(self, capsys):
        configure_logging(json_output=True, level=logging.DEBUG)
        structlog.get_logger().debug("Sending request")
        assert json.loads(capsys.readouterr().out.strip())["level"] == "debug"
