"""Tests for the structured logging facade."""

import io
import json
from uuid import UUID

from accountclient.runtime.observability import (
    BoundLogger,
    ConsoleRenderer,
    JsonRenderer,
    LogRenderer,
    NoOpRenderer,
    configure_logging,
    get_logger,
    log_context,
)

ACCOUNT_ID = UUID("ad27e265-9605-4b4b-a0e5-3003ea9cc4dc")


def _json_lines(buf: io.StringIO) -> list[dict[str, object]]:
    return [json.loads(line) for line in buf.getvalue().splitlines()]


def test_json_renderer_writes_one_line_per_entry() -> None:
    buf = io.StringIO()
    log = BoundLogger(renderer=JsonRenderer(output=buf), level=10)
    log.info("account fetched", account_id=ACCOUNT_ID, version=0)
    log.debug("second")

    first, second = _json_lines(buf)
    assert first["event"] == "account fetched"
    assert first["account_id"] == str(ACCOUNT_ID)  # non-JSON types fall back to str
    assert first["version"] == 0
    assert second["level"] == "debug"


def test_bind_merges_context_without_mutating_parent() -> None:
    buf = io.StringIO()
    parent = BoundLogger(context={"logger": "accountclient"}, renderer=JsonRenderer(output=buf))
    child = parent.bind(op="create_account")
    child.info("sent")
    parent.info("idle")

    sent, idle = _json_lines(buf)
    assert sent["op"] == "create_account" and sent["logger"] == "accountclient"
    assert "op" not in idle


def test_level_filtering() -> None:
    buf = io.StringIO()
    log = BoundLogger(renderer=JsonRenderer(output=buf), level=30)
    log.info("dropped")
    log.warning("kept")
    assert [e["event"] for e in _json_lines(buf)] == ["kept"]


def test_log_context_scopes_extra_fields() -> None:
    buf = io.StringIO()
    log = BoundLogger(renderer=JsonRenderer(output=buf))
    with log_context(request_id="r-1"):
        log.info("inside")
    log.info("outside")

    inside, outside = _json_lines(buf)
    assert inside["request_id"] == "r-1"
    assert "request_id" not in outside


def test_console_renderer_without_colors() -> None:
    buf = io.StringIO()
    BoundLogger(renderer=ConsoleRenderer(output=buf, colors=False)).warning("request failed", status=500)
    line = buf.getvalue()
    assert "[warning]" in line and "request failed" in line and "status=500" in line
    assert "\033[" not in line


def test_exception_includes_traceback() -> None:
    buf = io.StringIO()
    log = BoundLogger(renderer=JsonRenderer(output=buf))
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        log.exception("failed")
    (entry,) = _json_lines(buf)
    assert "RuntimeError: boom" in entry["exc_info"]


def test_configure_logging_sets_global_renderer() -> None:
    buf = io.StringIO()
    renderer = configure_logging("json", "WARNING", output=buf)
    assert isinstance(renderer, LogRenderer)

    log = get_logger("accountclient")
    log.info("filtered")
    log.error("shown")
    assert [(e["event"], e["logger"]) for e in _json_lines(buf)] == [("shown", "accountclient")]

    assert isinstance(configure_logging("none"), NoOpRenderer)
