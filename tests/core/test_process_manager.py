"""Tests for OS process primitives."""

import os
import signal
import time

from agentsquad.core.process_manager import (
    is_pid_alive,
    read_pid,
    run_oneshot_process,
    start_detached_process,
    stop_pid,
)


class TestOneshot:
    """Test run_oneshot_process with real commands."""

    def test_captures_stdout_lines(self, tmp_path):
        seen = []

        result = run_oneshot_process(
            "cat", [], cwd=str(tmp_path), env=dict(os.environ),
            stdout_path=tmp_path / "out.log", stderr_path=tmp_path / "err.log",
            stdin_text="first\nsecond\n", on_stdout=seen.append,
        )

        assert result.ok
        assert result.code == 0
        assert seen == ["first", "second"]
        assert (tmp_path / "out.log").read_text() == "first\nsecond\n"

    def test_captures_stderr_and_exit_code(self, tmp_path):
        errors = []

        result = run_oneshot_process(
            "sh", ["-c", "echo bad >&2; exit 4"], cwd=str(tmp_path), env=dict(os.environ),
            stdout_path=tmp_path / "out.log", stderr_path=tmp_path / "err.log",
            on_stderr=errors.append,
        )

        assert not result.ok
        assert result.code == 4
        assert result.signal is None
        assert errors == ["bad"]
        assert (tmp_path / "err.log").read_text() == "bad\n"

    def test_reports_signal(self, tmp_path):
        result = run_oneshot_process(
            "sh", ["-c", "kill -TERM $$"], cwd=str(tmp_path), env=dict(os.environ),
            stdout_path=tmp_path / "out.log", stderr_path=tmp_path / "err.log",
        )

        assert result.code is None
        assert result.signal == "SIGTERM"


class TestDetached:
    """Test detached processes and pid files."""

    def test_start_and_stop(self, tmp_path):
        pid_path = tmp_path / "pid.json"
        pid = start_detached_process(
            "sleep", ["30"], cwd=str(tmp_path), env=dict(os.environ),
            stdout_path=tmp_path / "out.log", stderr_path=tmp_path / "err.log", pid_path=pid_path,
        )
        try:
            metadata = read_pid(pid_path)
            assert metadata["pid"] == pid
            assert metadata["command"] == "sleep"
            assert metadata["args"] == ["30"]
            assert is_pid_alive(pid)

            result = stop_pid(pid_path)

            assert result.stopped is True
            assert result.pid == pid
            assert not pid_path.exists()
        finally:
            try:
                os.kill(pid, signal.SIGKILL)
            except ProcessLookupError:
                pass

    def test_stop_without_pid_file(self, tmp_path):
        result = stop_pid(tmp_path / "pid.json")

        assert result.stopped is False
        assert result.pid is None

    def test_stop_dead_process_removes_pid_file(self, tmp_path):
        pid_path = tmp_path / "pid.json"
        pid_path.write_text('{"pid": 999999999}')

        result = stop_pid(pid_path)

        assert result.stopped is False
        assert result.pid == 999999999
        assert not pid_path.exists()

    def test_read_pid_tolerates_garbage(self, tmp_path):
        pid_path = tmp_path / "pid.json"
        pid_path.write_text("not json")

        assert read_pid(pid_path) is None
        assert read_pid(tmp_path / "missing.json") is None

    def test_is_pid_alive(self):
        assert is_pid_alive(os.getpid())
        assert not is_pid_alive(None)
        assert not is_pid_alive(0)
