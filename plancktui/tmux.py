"""Agent sessions run inside tmux so they outlive the application."""

from __future__ import annotations

import hashlib
import os
import re
import shutil
import subprocess
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Iterable

_SPECIAL_CHARS = frozenset(" \t\n'\"\\$`!#&|;(){}[]<>?*~")
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")
_POLL_INTERVAL = 0.5


class TmuxError(Exception):
    """Raised when a tmux operation fails or a session is unknown."""


class SessionStatus(Enum):
    """Lifecycle state of a session."""

    RUNNING = "running"
    COMPLETED = "completed"


@dataclass
class SessionInfo:
    """A session as reported by the backend."""

    id: str
    task_id: str
    backend_handle: str
    status: SessionStatus
    backend: str = "tmux"
    started_at: datetime | None = None


def _run_tmux(*args: str) -> str:
    """Run tmux with ``args`` and return its combined output without trailing newlines."""
    try:
        completed = subprocess.run(
            ["tmux", *args],
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            check=False,
        )
    except OSError as exc:
        raise TmuxError(f"run tmux: {exc}") from exc
    output = (completed.stdout or "").rstrip("\n")
    if completed.returncode != 0:
        raise TmuxError(output or f"tmux exited with status {completed.returncode}")
    return output


def _parse_int(text: str) -> int:
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


def _pane_state(output: str) -> tuple[bool, int]:
    """Interpret ``#{pane_dead} #{pane_dead_status}`` output."""
    parts = output.strip().split(" ", 1)
    if parts[0] != "1":
        return False, 0
    return True, _parse_int(parts[1]) if len(parts) > 1 else 0


class _TmuxSession:
    """Book-keeping for one session living in tmux."""

    def __init__(self, session_id: str, tmux_name: str, work_dir: str) -> None:
        self.id = session_id
        self.tmux_name = tmux_name
        self.work_dir = work_dir
        self.lock = threading.Lock()
        self.done = threading.Event()
        self.exit_code = 0
        self.exited = False
        self.title = ""

    def mark_exited(self, code: int) -> None:
        with self.lock:
            if not self.exited:
                self.exited = True
                self.exit_code = code
                self.done.set()

    def start_watching(self) -> None:
        threading.Thread(target=self._watch_loop, daemon=True).start()

    def _watch_loop(self) -> None:
        while not self.done.wait(_POLL_INTERVAL):
            try:
                output = _run_tmux(
                    "display-message", "-t", self.tmux_name, "-p",
                    "#{pane_dead} #{pane_dead_status}",
                )
            except TmuxError:
                self.mark_exited(1)
                return
            dead, code = _pane_state(output)
            if dead:
                self.mark_exited(code)
                return
            try:
                title = _run_tmux("display-message", "-t", self.tmux_name, "-p", "#{pane_title}")
            except TmuxError:
                continue
            with self.lock:
                self.title = title.strip()


class TmuxBackend:
    """Runs each agent in its own tmux session, isolated per working directory."""

    def __init__(
        self,
        prefix: str,
        sessions_dir: str | os.PathLike[str],
        work_dir: str,
        extra_args: Iterable[str] | None = None,
    ) -> None:
        self.prefix = prefix
        self.work_dir_hash = hashlib.sha256(work_dir.encode()).digest()[:4].hex()
        self.sessions_dir = Path(sessions_dir)
        self.extra_args = list(extra_args or [])
        self._lock = threading.Lock()
        self._sessions: dict[str, _TmuxSession] = {}

    def name(self) -> str:
        """Return the backend name."""
        return "tmux"

    def is_available(self) -> bool:
        """Return True if tmux is installed."""
        return shutil.which("tmux") is not None

    def session_name(self, short_id: str) -> str:
        """Return the tmux session name for a short session id."""
        return f"{self.prefix}-{self.work_dir_hash}-{short_id}"

    def session_prefix(self) -> str:
        """Return the prefix shared by all sessions of this working directory."""
        return f"{self.prefix}-{self.work_dir_hash}-"

    def launch(self, task_id: str, prompt: str = "") -> SessionInfo:
        """Start the default ``claude`` command in a new tmux session."""
        return self.launch_command(task_id, "claude", list(self.extra_args), prompt)

    def launch_command(
        self,
        work_dir: str,
        command: str,
        args: Iterable[str] | None = None,
        prompt: str = "",
    ) -> SessionInfo:
        """Start ``command`` with ``args`` in a new detached tmux session."""
        session_id = str(uuid.uuid4())
        tmux_name = self.session_name(session_id[:8])

        try:
            self.sessions_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise TmuxError(f"create sessions dir: {exc}") from exc

        cmd_args = list(args or [])
        prompt_file: Path | None = None
        if prompt:
            prompt_file = self.sessions_dir / f"{session_id}-prompt.md"
            try:
                prompt_file.write_text(prompt)
                prompt_file.chmod(0o600)
            except OSError as exc:
                raise TmuxError(f"write prompt file: {exc}") from exc
            cmd_args += ["--system-prompt-file", str(prompt_file)]

        tmux_args = ["new-session", "-d", "-s", tmux_name, "-x", "80", "-y", "24"]
        if os.path.isdir(work_dir):
            tmux_args += ["-c", work_dir]
        tmux_args.append("-E")
        tmux_args.append(shell_quote(command, *cmd_args))

        try:
            _run_tmux(*tmux_args)
        except TmuxError as exc:
            if prompt_file is not None:
                prompt_file.unlink(missing_ok=True)
            raise TmuxError(f"create tmux session {tmux_name!r}: {exc}") from exc

        for option, value in (
            ("history-limit", "5000"),
            ("allow-passthrough", "on"),
            ("set-titles", "on"),
            ("remain-on-exit", "on"),
        ):
            try:
                _run_tmux("set-option", "-t", tmux_name, option, value)
            except TmuxError:
                pass

        session = _TmuxSession(session_id, tmux_name, work_dir)
        session.start_watching()
        with self._lock:
            self._sessions[session_id] = session

        return SessionInfo(
            id=session_id,
            task_id=work_dir,
            backend_handle=session_id,
            status=SessionStatus.RUNNING,
            started_at=datetime.now(),
        )

    def _get(self, handle: str) -> _TmuxSession | None:
        with self._lock:
            return self._sessions.get(handle)

    def _require(self, handle: str) -> _TmuxSession:
        session = self._get(handle)
        if session is None:
            raise TmuxError(f"session not found: {handle}")
        return session

    def attach_command(self, handle: str) -> list[str]:
        """Return the command line that attaches a terminal to the session."""
        return ["tmux", "attach-session", "-t", self._require(handle).tmux_name]

    def capture(self, handle: str, lines: int = 0) -> str:
        """Return pane content including up to ``lines`` of scrollback (1000 if not positive)."""
        session = self._require(handle)
        start_line = -lines if lines > 0 else -1000
        try:
            return _run_tmux(
                "capture-pane", "-e", "-p", "-S", str(start_line), "-t", session.tmux_name
            )
        except TmuxError as exc:
            raise TmuxError(f"capture pane: {exc}") from exc

    def render(self, handle: str) -> str:
        """Return the visible pane content with ANSI styles."""
        session = self._require(handle)
        try:
            return _run_tmux("capture-pane", "-e", "-p", "-t", session.tmux_name)
        except TmuxError as exc:
            raise TmuxError(f"render pane: {exc}") from exc

    def write(self, handle: str, data: bytes) -> None:
        """Send raw bytes to the pane."""
        session = self._require(handle)
        if not data:
            return
        _run_tmux("send-keys", "-H", "-t", session.tmux_name, *(f"{b:02x}" for b in data))

    def resize(self, handle: str, rows: int, cols: int) -> None:
        """Resize the session's window."""
        session = self._require(handle)
        _run_tmux("resize-window", "-t", session.tmux_name, "-x", str(cols), "-y", str(rows))

    def kill(self, handle: str) -> None:
        """Terminate the tmux session and forget it."""
        session = self._require(handle)
        try:
            _run_tmux("kill-session", "-t", session.tmux_name)
        except TmuxError:
            pass
        session.mark_exited(-1)
        with self._lock:
            self._sessions.pop(handle, None)

    def list_sessions(self) -> list[SessionInfo]:
        """Return all sessions managed by this backend."""
        with self._lock:
            sessions = list(self._sessions.values())
        result = []
        for session in sessions:
            with session.lock:
                exited = session.exited
            result.append(
                SessionInfo(
                    id=session.id,
                    task_id=session.work_dir,
                    backend_handle=session.id,
                    status=SessionStatus.COMPLETED if exited else SessionStatus.RUNNING,
                )
            )
        return result

    def status(self, handle: str) -> SessionStatus:
        """Return the session status; unknown sessions count as completed."""
        session = self._get(handle)
        if session is None:
            return SessionStatus.COMPLETED
        with session.lock:
            return SessionStatus.COMPLETED if session.exited else SessionStatus.RUNNING

    def title(self, handle: str) -> str:
        """Return the last seen pane title, or an empty string."""
        session = self._get(handle)
        if session is None:
            return ""
        with session.lock:
            return session.title

    def exit_code(self, handle: str) -> int:
        """Return the exit code of a finished session."""
        session = self._require(handle)
        with session.lock:
            if not session.exited:
                raise TmuxError("session still running")
            return session.exit_code

    def wait(self, handle: str, timeout: float | None = None) -> bool:
        """Block until the session exits; return False if ``timeout`` passes first."""
        return self._require(handle).done.wait(timeout)

    def list_tmux_sessions(self) -> list[str]:
        """Return names of tmux sessions belonging to this working directory."""
        try:
            output = _run_tmux("list-sessions", "-F", "#{session_name}")
        except TmuxError:
            return []
        prefix = self.session_prefix()
        names = (line.strip() for line in output.split("\n"))
        return [name for name in names if name.startswith(prefix)]

    def reattach_session(self, tmux_name: str, session_id: str, work_dir: str) -> SessionInfo:
        """Take over an existing tmux session, e.g. after a restart."""
        try:
            _run_tmux("has-session", "-t", tmux_name)
        except TmuxError as exc:
            raise TmuxError(f"tmux session {tmux_name!r} does not exist") from exc

        session = _TmuxSession(session_id, tmux_name, work_dir)
        try:
            output = _run_tmux(
                "display-message", "-t", tmux_name, "-p", "#{pane_dead} #{pane_dead_status}"
            )
        except TmuxError:
            output = ""
        dead, code = _pane_state(output)
        if dead:
            session.mark_exited(code)
            status = SessionStatus.COMPLETED
        else:
            session.start_watching()
            status = SessionStatus.RUNNING

        try:
            title = _run_tmux("display-message", "-t", tmux_name, "-p", "#{pane_title}")
        except TmuxError:
            title = ""
        with session.lock:
            session.title = title.strip()

        with self._lock:
            self._sessions[session_id] = session

        return SessionInfo(
            id=session_id,
            task_id=work_dir,
            backend_handle=session_id,
            status=status,
            started_at=datetime.now(),
        )

    def tmux_session_name(self, handle: str) -> str:
        """Return the tmux session name for a handle, or an empty string."""
        session = self._get(handle)
        return "" if session is None else session.tmux_name


def shell_quote(command: str, *args: str) -> str:
    """Build a shell command line with each word quoted where needed."""
    return " ".join(quote_arg(part) for part in (command, *args))


def quote_arg(value: str) -> str:
    """Single-quote ``value`` if it holds characters special to the shell."""
    if not any(ch in _SPECIAL_CHARS for ch in value):
        return value
    return "'" + value.replace("'", "'\"'\"'") + "'"