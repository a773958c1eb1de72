"""OS process primitives for provider runs.

Detached processes outlive the invocation that started them and are
tracked only through a pid file. Oneshot processes run to completion while
their output is captured line by line.
"""
import logging
import os
import queue
import signal
import subprocess
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional

from ..utils.jsonl import read_json, write_json
from .ids import utcnow

logger = logging.getLogger(__name__)

LineCallback = Callable[[str], None]


@dataclass
class ProcessResult:
    """Exit status of a finished oneshot process."""
    code: Optional[int]
    signal: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.code == 0


@dataclass
class StopResult:
    stopped: bool
    pid: Optional[int] = None


def start_detached_process(command: str, args: List[str], cwd: str, env: Dict[str, str],
                           stdout_path: Path, stderr_path: Path, pid_path: Path) -> int:
    """Start a process in its own session and record its pid.

    Output is appended to the given log files. The pid file holds the pid,
    the command line and the start time.

    Returns:
        The pid of the started process
    """
    stdout_path.parent.mkdir(parents=True, exist_ok=True)
    with open(stdout_path, 'a') as out_file, open(stderr_path, 'a') as err_file:
        process = subprocess.Popen(
            [command, *args],
            stdout=out_file,
            stderr=err_file,
            stdin=subprocess.DEVNULL,
            start_new_session=True,
            cwd=cwd,
            env=env,
        )

    write_json(pid_path, {
        "pid": process.pid,
        "command": command,
        "args": list(args),
        "started_at": utcnow().isoformat(),
    })
    logger.info(f"Started detached process {process.pid}: {command}")
    return process.pid


def _pump(stream, name: str, lines: "queue.Queue") -> None:
    for line in iter(stream.readline, ''):
        lines.put((name, line))
    stream.close()
    lines.put((name, None))


def run_oneshot_process(command: str, args: List[str], cwd: str, env: Dict[str, str],
                        stdout_path: Path, stderr_path: Path,
                        stdin_text: Optional[str] = None,
                        on_stdout: Optional[LineCallback] = None,
                        on_stderr: Optional[LineCallback] = None) -> ProcessResult:
    """Run a process to completion, teeing its output.

    Each output line is appended to its log file and handed to the matching
    callback. Callbacks run on the calling thread.

    Raises:
        OSError: If the command cannot be started
    """
    stdout_path.parent.mkdir(parents=True, exist_ok=True)
    process = subprocess.Popen(
        [command, *args],
        stdin=subprocess.PIPE,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        cwd=cwd,
        env=env,
        text=True,
        errors='replace',
    )
    logger.debug(f"Started oneshot process {process.pid}: {command} {' '.join(args)}")

    lines: "queue.Queue" = queue.Queue()
    pumps = [
        threading.Thread(target=_pump, args=(process.stdout, "stdout", lines), daemon=True),
        threading.Thread(target=_pump, args=(process.stderr, "stderr", lines), daemon=True),
    ]
    for pump in pumps:
        pump.start()

    try:
        if stdin_text:
            process.stdin.write(stdin_text)
        process.stdin.close()
    except BrokenPipeError:
        logger.debug(f"Process {process.pid} closed stdin before reading the message")

    callbacks = {"stdout": on_stdout, "stderr": on_stderr}
    with open(stdout_path, 'a') as out_file, open(stderr_path, 'a') as err_file:
        files = {"stdout": out_file, "stderr": err_file}
        open_streams = 2
        while open_streams:
            name, line = lines.get()
            if line is None:
                open_streams -= 1
                continue
            files[name].write(line)
            files[name].flush()
            callback = callbacks[name]
            if callback is not None:
                callback(line.rstrip("\n"))

    for pump in pumps:
        pump.join()
    returncode = process.wait()

    if returncode < 0:
        try:
            signal_name = signal.Signals(-returncode).name
        except ValueError:
            signal_name = str(-returncode)
        return ProcessResult(code=None, signal=signal_name)
    return ProcessResult(code=returncode)


def read_pid(pid_path: Path) -> Optional[dict]:
    """Read pid metadata, or None if the file is missing or unreadable."""
    if not pid_path.exists():
        return None
    try:
        return read_json(pid_path)
    except ValueError:
        logger.warning(f"Ignoring unreadable pid file {pid_path}")
        return None


def is_pid_alive(pid: Optional[int]) -> bool:
    """Best-effort liveness check; a reused pid reads as alive."""
    if not pid:
        return False
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True


def stop_pid(pid_path: Path) -> StopResult:
    """Send SIGTERM to the recorded process and remove the pid file."""
    metadata = read_pid(pid_path)
    if not metadata or not metadata.get("pid"):
        return StopResult(stopped=False)

    pid = metadata["pid"]
    stopped = False
    if is_pid_alive(pid):
        try:
            os.kill(pid, signal.SIGTERM)
            stopped = True
        except ProcessLookupError:
            stopped = False

    pid_path.unlink(missing_ok=True)
    if stopped:
        logger.info(f"Sent SIGTERM to process {pid}")
    return StopResult(stopped=stopped, pid=pid)
