import stat
from pathlib import Path

import pytest

from preflight.evaluator import Evaluator
from preflight.external import ExternalCheckLoader, executable_name
from preflight.model import Requirement


def write_check(directory: Path, keyword: str, body: str, executable: bool = True) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / executable_name(keyword)
    path.write_text("#!/bin/sh\n" + body + "\n", encoding="utf-8")
    if executable:
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


def test_executable_name():
    assert executable_name("PORT-FREE") == "REQUIRE_PORT-FREE"


def test_find_first_match_wins(tmp_path):
    project, user = tmp_path / "lib", tmp_path / "home_lib"
    first = write_check(project, "PORT-FREE", "exit 0")
    write_check(user, "PORT-FREE", "exit 1")
    loader = ExternalCheckLoader([project, user])
    check = loader.find("PORT-FREE")
    assert check is not None
    assert check.path == first


def test_find_skips_non_executable(tmp_path):
    project, user = tmp_path / "lib", tmp_path / "home_lib"
    write_check(project, "PORT-FREE", "exit 0", executable=False)
    second = write_check(user, "PORT-FREE", "exit 0")
    loader = ExternalCheckLoader([project, user])
    assert loader.find("PORT-FREE").path == second


@pytest.mark.parametrize("keyword", ["../evil", "a/b", "..", ".", "", "two words"])
def test_find_refuses_non_plain_keywords(tmp_path, keyword):
    loader = ExternalCheckLoader([tmp_path])
    assert loader.find(keyword) is None


def test_run_success_receives_full_token_list(tmp_path):
    out = tmp_path / "argv.txt"
    write_check(tmp_path / "lib", "PORT-FREE", f'printf "%s\\n" "$@" > "{out}"\nexit 0')
    loader = ExternalCheckLoader([tmp_path / "lib"])
    res = loader.run(Requirement("PORT-FREE", ("8080", "tcp")))
    assert res.ok
    assert out.read_text().splitlines() == ["PORT-FREE", "8080", "tcp"]


def test_run_failure_forwards_diagnostic_and_code(tmp_path):
    write_check(tmp_path, "PORT-FREE", 'echo "port $2 in use" >&2\nexit 3')
    loader = ExternalCheckLoader([tmp_path])
    res = loader.run(Requirement("PORT-FREE", ("8080",)))
    assert not res.ok
    assert res.code == 3
    assert res.message == "port 8080 in use"


def test_run_failure_without_output(tmp_path):
    write_check(tmp_path, "SILENT", "exit 1")
    res = ExternalCheckLoader([tmp_path]).run(Requirement("SILENT", ("x",)))
    assert res.message == "Requirement SILENT not met (exit 1)"
    assert res.code == 1


def test_run_timeout(tmp_path):
    write_check(tmp_path, "SLOW", "sleep 5")
    loader = ExternalCheckLoader([tmp_path], timeout_s=0.5)
    res = loader.run(Requirement("SLOW", ("x",)))
    assert not res.ok
    assert res.code == 124
    assert "timed out" in res.message


def test_run_exit_124_is_not_a_timeout(tmp_path):
    write_check(tmp_path, "WRAPPED", "echo 'inner check failed' >&2\nexit 124")
    res = ExternalCheckLoader([tmp_path]).run(Requirement("WRAPPED", ("x",)))
    assert not res.ok
    assert res.code == 124
    assert res.message == "inner check failed"


def test_run_killed_by_signal_uses_failure_code(tmp_path):
    write_check(tmp_path, "KILLED", "kill -9 $$")
    res = ExternalCheckLoader([tmp_path]).run(Requirement("KILLED", ("x",)))
    assert not res.ok
    assert res.code == 80

    res = ExternalCheckLoader([tmp_path], failure_code=90).run(Requirement("KILLED", ("x",)))
    assert res.code == 90


def test_run_unknown(tmp_path):
    res = ExternalCheckLoader([tmp_path / "missing"]).run(Requirement("NOPE", ("x",)))
    assert not res.ok
    assert res.code == 80
    assert res.message == "Unknown requirement: NOPE"


def test_available_lists_first_match(tmp_path):
    a, b = tmp_path / "a", tmp_path / "b"
    write_check(a, "ONE", "exit 0")
    write_check(b, "ONE", "exit 0")
    write_check(b, "TWO", "exit 0")
    checks = ExternalCheckLoader([a, b, tmp_path / "missing"]).available()
    assert [(c.keyword, c.path.parent) for c in checks] == [("ONE", a), ("TWO", b)]


def test_evaluator_falls_back_to_external(tmp_path):
    write_check(tmp_path, "PORT-FREE", '[ "$2" = "8080" ]')
    evaluator = Evaluator(external=ExternalCheckLoader([tmp_path]))
    assert evaluator.evaluate_tokens("PORT-FREE", "8080").ok
    assert not evaluator.evaluate_tokens("PORT-FREE", "22").ok


def test_builtins_shadow_external_checks(tmp_path):
    write_check(tmp_path, "FILE", "exit 0")
    evaluator = Evaluator(external=ExternalCheckLoader([tmp_path]))
    assert not evaluator.evaluate_tokens("FILE", str(tmp_path / "nope")).ok


def test_external_check_usable_in_as_clause(tmp_path):
    from preflight.evaluator import EvalContext

    write_check(tmp_path, "EVEN", 'test $(( $2 % 2 )) -eq 0')
    evaluator = Evaluator(external=ExternalCheckLoader([tmp_path]))
    ctx = EvalContext(variables={"WORKERS": "4", "SHARDS": "3"})
    assert evaluator.evaluate_tokens("VARIABLE", "WORKERS", "AS", "EVEN", ctx=ctx).ok
    assert not evaluator.evaluate_tokens("VARIABLE", "SHARDS", "AS", "EVEN", ctx=ctx).ok


def test_non_executable_only_is_unknown(tmp_path):
    write_check(tmp_path, "PORT-FREE", "exit 0", executable=False)
    res = ExternalCheckLoader([tmp_path]).run(Requirement("PORT-FREE", ("1",)))
    assert res.message == "Unknown requirement: PORT-FREE"
