import pytest

from preflight import Session, require
from preflight.config import PreflightConfig
from preflight.errors import RequirementNotMet, RequireSyntaxError
from preflight.evaluator import Evaluator
from preflight.external import ExternalCheckLoader
from preflight.state import ErrorReporter, ErrorState
from preflight.util.events import EventLog


def make_session(tmp_path=None, **kwargs):
    cfg = PreflightConfig(event_log=(tmp_path / "events.jsonl") if tmp_path else None)
    evaluator = Evaluator(external=ExternalCheckLoader([]), config=cfg)
    return Session(evaluator, config=cfg, **kwargs)


def test_success_leaves_state_empty(tmp_path):
    s = make_session()
    assert s.require("DIRECTORY", str(tmp_path))
    assert not s.state.live
    assert s.state.message == ""


def test_failure_populates_state(tmp_path):
    s = make_session()
    assert not s.require("FILE", str(tmp_path / "nope"))
    assert s.state.live
    assert s.state.code == 80
    assert "nope" in s.state.message


def test_state_cleared_at_start_of_each_evaluation(tmp_path):
    s = make_session()
    s.require("FILE", str(tmp_path / "first"))
    assert "first" in s.state.message
    s.require("DIRECTORY", str(tmp_path))
    assert not s.state.live


def test_sequential_failures_do_not_leak(tmp_path):
    s = make_session()
    s.require("FILE", str(tmp_path / "first"))
    s.require("INTEGER", "abc")
    message, code = s.state.consume()
    assert "first" not in message
    assert message == "Not an integer: 'abc'"
    assert code == 80


def test_syntax_error_propagates_and_leaves_state_empty(tmp_path):
    s = make_session()
    s.require("FILE", str(tmp_path / "nope"))
    with pytest.raises(RequireSyntaxError):
        s.require("INTEGER", "5", "IS", "ROUGHLY", "3")
    assert not s.state.live


def test_branch_on_failure(tmp_path):
    target = tmp_path / "cache"
    s = make_session()
    if not s.require("DIRECTORY", str(target)):
        target.mkdir()
    assert s.require("DIRECTORY", str(target))


def test_error_reports_stored_failure(tmp_path):
    s = make_session()
    s.require("FILE", str(tmp_path / "nope"))
    with pytest.raises(SystemExit) as exc:
        s.error()
    assert exc.value.code == 80
    assert not s.state.live


def test_error_numeric_first_argument_overrides_code(tmp_path):
    s = make_session()
    s.require("FILE", str(tmp_path / "nope"))
    with pytest.raises(SystemExit) as exc:
        s.error(3)
    assert exc.value.code == 3


def test_ensure_raises_requirement_not_met():
    s = make_session(variables={})
    with pytest.raises(RequirementNotMet) as exc:
        s.ensure("VARIABLE", "PORT")
    assert exc.value.code == 80
    assert exc.value.message == "Variable not set: PORT"
    assert not s.state.live


def test_session_context_args_and_caller():
    s = make_session(args=["a"], caller="deploy")
    res = s.evaluate("AT-LEAST", "2", "ARGUMENTS")
    assert res.message == "deploy: argument count must be at least 2 (got 1)"
    assert s.require("AT-LEAST", "2", "ARGUMENTS", ctx=s.for_call("deploy", ["a", "b"]))


def test_sessions_have_independent_state(tmp_path):
    a, b = make_session(), make_session()
    a.require("FILE", str(tmp_path / "nope"))
    assert a.state.live
    assert not b.state.live


def test_event_log_records_each_evaluation(tmp_path):
    s = make_session(tmp_path)
    s.require("DIRECTORY", str(tmp_path))
    s.require("INTEGER", "x")
    with pytest.raises(RequireSyntaxError):
        s.require("FILE")
    events = EventLog(tmp_path / "events.jsonl").read()
    assert [e["event"] for e in events] == ["require", "require", "syntax_error"]
    assert events[0]["ok"] is True
    assert events[1]["ok"] is False and events[1]["code"] == 80
    assert events[1]["tokens"] == ["INTEGER", "x"]
    assert all(e["session"] == s.id for e in events)
    assert all("ts_ms" in e for e in events)


def test_module_level_require():
    assert require("INTEGER", "5", "IS", "AT-LEAST", "3")
    assert not require("VARIABLE", "PORT", "AS", "INTEGER", "IS", "AT-MOST", "65535",
                       variables={"PORT": "70000"})
    assert require("EXACTLY", "2", "ARGUMENTS", args=["x", "y"])


# -- reporter -----------------------------------------------------------------


def _state_with(message, code=80):
    state = ErrorState()
    state.message, state.code = message, code
    return state


def test_reporter_no_args_uses_stored():
    reporter = ErrorReporter(_state_with("File not found: /x", 80))
    assert reporter.resolve() == ("File not found: /x", 80)
    assert not reporter.state.live


def test_reporter_numeric_first_argument():
    reporter = ErrorReporter(_state_with("File not found: /x"))
    assert reporter.resolve(2) == ("File not found: /x", 2)
    reporter = ErrorReporter(_state_with("File not found: /x"))
    assert reporter.resolve("65", "bad", "input") == ("bad input", 65)


def test_reporter_message_only_keeps_stored_code():
    reporter = ErrorReporter(_state_with("stale", 7))
    assert reporter.resolve("custom", "message") == ("custom message", 7)


def test_reporter_with_empty_state():
    reporter = ErrorReporter(ErrorState())
    assert reporter.resolve() == ("Requirement not met", 80)
    assert reporter.resolve("boom") == ("boom", 80)


def test_reporter_report_exits():
    reporter = ErrorReporter(ErrorState())
    with pytest.raises(SystemExit) as exc:
        reporter.report(5, "explicit")
    assert exc.value.code == 5


def test_config_defaults_to_evaluator_config(tmp_path):
    cfg = PreflightConfig(failure_code=90)
    s = Session(Evaluator(external=ExternalCheckLoader([]), config=cfg))
    assert s.config is cfg
    assert s.state.default_code == 90
    assert not s.require("FILE", str(tmp_path / "nope"))
    assert s.state.code == 90


def test_conflicting_config_and_evaluator_rejected():
    evaluator = Evaluator(external=ExternalCheckLoader([]), config=PreflightConfig(failure_code=90))
    with pytest.raises(ValueError, match="differs"):
        Session(evaluator, config=PreflightConfig(failure_code=70))
    # Equal configs are fine
    assert Session(evaluator, config=PreflightConfig(failure_code=90)).config.failure_code == 90
