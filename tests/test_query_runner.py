import subprocess

import pytest

import query_runner
from config import Settings
from query_runner import SOURCE, TARGET, CliQueryRunner


class Completed:
    def __init__(self, stdout):
        self.stdout = stdout


@pytest.fixture
def runner():
    return CliQueryRunner(
        source_cli="psql -tAc",
        target_cli="clickhouse-client --query",
        timeout=5,
    )


def record_runs(monkeypatch, result):
    calls = []

    def fake_run(cmd, **kwargs):
        calls.append((cmd, kwargs))
        if isinstance(result, Exception):
            raise result
        return Completed(result)

    monkeypatch.setattr(query_runner.subprocess, "run", fake_run)
    return calls


def test_row_count_builds_command(monkeypatch, runner):
    calls = record_runs(monkeypatch, " 42\n")

    assert runner.query_row_count(SOURCE, "public.orders") == 42

    cmd, kwargs = calls[0]
    assert cmd == ["psql", "-tAc", "SELECT count(*) FROM public.orders"]
    assert kwargs["timeout"] == 5
    assert kwargs["check"] is True


def test_target_size_uses_bare_table_name(monkeypatch, runner):
    calls = record_runs(monkeypatch, "2048\n")

    assert runner.query_size_bytes(TARGET, "default.orders") == 2048
    assert calls[0][0][-1].endswith("table = 'orders'")


@pytest.mark.parametrize(
    "failure",
    [
        subprocess.CalledProcessError(1, ["psql"], stderr="relation does not exist"),
        subprocess.TimeoutExpired(["psql"], 5),
        FileNotFoundError("psql"),
    ],
)
def test_failures_are_absent(monkeypatch, runner, failure, caplog):
    record_runs(monkeypatch, failure)

    assert runner.query_row_count(SOURCE, "orders") is None
    assert "source" in caplog.text


def test_non_numeric_output_is_absent(monkeypatch, runner):
    record_runs(monkeypatch, "ERROR: nope\n")

    assert runner.query_row_count(TARGET, "orders") is None


def test_empty_output_is_absent(monkeypatch, runner):
    record_runs(monkeypatch, "\n")

    assert runner.query_size_bytes(SOURCE, "orders") is None


def test_rejects_unsafe_table_refs(monkeypatch, runner):
    calls = record_runs(monkeypatch, "1")

    assert runner.query_row_count(SOURCE, "orders; DROP TABLE orders") is None
    assert runner.query_row_count("warehouse", "orders") is None
    assert calls == []


def test_from_settings():
    runner = CliQueryRunner.from_settings(
        Settings(source_cli="a b", target_cli="c", query_timeout=9)
    )

    assert runner.commands == {SOURCE: ["a", "b"], TARGET: ["c"]}
    assert runner.timeout == 9
