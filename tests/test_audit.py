"""TDD: AuditLogger tests written FIRST"""
import json

from src.audit import AuditLogger, format_event


def read_events(path):
    return [json.loads(line) for line in path.read_text().splitlines() if line]


def test_json_mode_writes_one_line_per_event(tmp_path):
    path = tmp_path / "audit.log"
    audit = AuditLogger(path, json_format=True)

    audit.log_auth(1, "alice", authorized=False)
    audit.log_rate_limit(1, "alice", 12)

    events = read_events(path)
    assert [e["event"] for e in events] == ["auth", "rate_limit"]
    assert events[0]["authorized"] is False
    assert events[1]["retry_after"] == 12
    assert all(e["user_id"] == 1 and e["username"] == "alice" for e in events)
    assert all("timestamp" in e for e in events)


def test_message_omits_empty_response(tmp_path):
    path = tmp_path / "audit.log"
    audit = AuditLogger(path, json_format=True)

    audit.log_message(1, "alice", "voice", "[voice 3s]")
    audit.log_message(1, "alice", "voice", "[voice 3s]", response="hello")

    first, second = read_events(path)
    assert "response" not in first
    assert second["response"] == "hello"
    assert second["message_type"] == "voice"


def test_tool_use_reason_only_when_blocked(tmp_path):
    path = tmp_path / "audit.log"
    audit = AuditLogger(path, json_format=True)

    audit.log_tool_use(1, "a", "Bash", {"cmd": "ls"}, blocked=False, reason="ignored")
    audit.log_tool_use(1, "a", "Bash", {"cmd": "rm -rf /"}, blocked=True, reason="dangerous")

    allowed, blocked = read_events(path)
    assert "reason" not in allowed
    assert blocked["reason"] == "dangerous"
    assert blocked["tool_input"] == {"cmd": "rm -rf /"}


def test_error_context_is_optional(tmp_path):
    path = tmp_path / "audit.log"
    audit = AuditLogger(path, json_format=True)

    audit.log_error(1, "a", "boom")
    audit.log_error(1, "a", "boom", context="voice")

    plain, with_context = read_events(path)
    assert "context" not in plain
    assert with_context["context"] == "voice"


def test_text_mode_truncates_long_content():
    event = {"event": "message", "content": "x" * 600, "response": "short"}

    text = format_event(event, json_format=False)

    assert text.startswith("\n" + "=" * 60)
    assert "content: " + "x" * 500 + "..." in text
    assert "response: short" in text


def test_text_mode_keeps_other_long_fields():
    text = format_event({"error": "e" * 600}, json_format=False)

    assert "e" * 600 in text


def test_write_failure_is_logged_not_raised(tmp_path, caplog):
    audit = AuditLogger(tmp_path, json_format=True)

    audit.log_auth(1, "a", authorized=True)

    assert "Audit log write failed" in caplog.text
