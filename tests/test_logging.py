import json

import structlog

from oai_async.logging import configure_logging, redact


def test_redact_masks_keys_bearer_tokens_and_sensitive_fields():
    event = {
        "event": "openai_request",
        "headers": {"Authorization": "Bearer abcdef123456", "Accept": "application/json"},
        "note": "used sk-live0123456789abcdef for the call",
        "api_key": "anything",
        "max_tokens": 32,
        "custom": "my-exact-secret",
    }
    out = redact(event, secrets=["my-exact-secret"])
    assert out["headers"]["Authorization"] == "[REDACTED]"
    assert out["headers"]["Accept"] == "application/json"
    assert "sk-live0123456789abcdef" not in out["note"]
    assert out["api_key"] == "[REDACTED]"
    assert out["max_tokens"] == 32
    assert out["custom"] == "[REDACTED]"


def test_configure_logging_renders_json_with_redaction(capsys):
    try:
        configure_logging(level="INFO", fmt="json", secrets=["sk-configured-secret"])
        structlog.get_logger().info("openai_request", detail="key=sk-configured-secret", endpoint="completions")
        line = capsys.readouterr().out.strip().splitlines()[-1]
        payload = json.loads(line)
        assert payload["event"] == "openai_request"
        assert payload["endpoint"] == "completions"
        assert payload["level"] == "info"
        assert "sk-configured-secret" not in payload["detail"]
    finally:
        structlog.reset_defaults()
