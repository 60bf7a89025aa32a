"""Invocation engine: one cursor-agent subprocess per call.

Each invocation owns its process, its two timers and its output
buffers. Exactly one of four paths settles the result:

- start failure (spawn raised OSError)
- hard timeout (wall-clock deadline, process is killed)
- close (both streams drained and the process reaped), which also
  covers processes terminated by the idle timer
- the idle timer itself never settles; it kills the process and
  lets the close path classify the exit

Uses asyncio.create_subprocess_exec (array-based, no shell). The
process runs in its own session so a kill reaches the whole process
group, including helpers that inherited the output pipes.
"""
from __future__ import annotations

import asyncio
import codecs
import json
import logging
import os
import shlex
import signal
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from .argv import assemble_argv
from .config import AgentSettings, resolve_config
from .models import (
    AGENT_NAME,
    NO_OUTPUT,
    EffectiveConfig,
    InvocationRequest,
    InvocationResult,
    Outcome,
)

logger = logging.getLogger(__name__)

_READ_CHUNK = 64 * 1024
# Upper bound on reaping a killed process before giving up on it.
_REAP_TIMEOUT_SECONDS = 5.0


def _kill(proc: asyncio.subprocess.Process) -> None:
    """SIGKILL the process group (or the process where groups don't exist)."""
    if proc.returncode is not None:
        return
    try:
        if hasattr(os, "killpg"):
            os.killpg(proc.pid, signal.SIGKILL)
        else:
            proc.kill()
    except ProcessLookupError:
        pass  # Already exited
    except PermissionError:
        # Group may have been reassigned; fall back to the direct child.
        try:
            proc.kill()
        except ProcessLookupError:
            pass


@asynccontextmanager
async def _owned(proc: asyncio.subprocess.Process) -> AsyncIterator[asyncio.subprocess.Process]:
    """Scope a process to one invocation: killed and reaped on every exit."""
    try:
        yield proc
    finally:
        if proc.returncode is None:
            _kill(proc)
        try:
            await asyncio.wait_for(proc.wait(), timeout=_REAP_TIMEOUT_SECONDS)
        except asyncio.TimeoutError:
            logger.warning(
                "cursor-agent pid=%s not reaped within %.0fs after kill",
                proc.pid, _REAP_TIMEOUT_SECONDS,
            )


def _exit_code_label(code: int | None) -> str:
    if code is not None and code < 0:
        try:
            return f"{code} ({signal.Signals(-code).name})"
        except ValueError:
            return str(code)
    return str(code)


class _OutputBuffer:
    """Accumulates decoded text, optionally capped at max_chars."""

    def __init__(self, max_chars: int = 0) -> None:
        self._parts: list[str] = []
        self._size = 0
        self._max_chars = max_chars
        self.dropped = 0

    def append(self, text: str) -> None:
        if not text:
            return
        if self._max_chars:
            room = self._max_chars - self._size
            if room <= 0:
                self.dropped += len(text)
                return
            if len(text) > room:
                self.dropped += len(text) - room
                text = text[:room]
        self._parts.append(text)
        self._size += len(text)

    def __len__(self) -> int:
        return self._size

    @property
    def text(self) -> str:
        value = "".join(self._parts)
        if self.dropped:
            value += f"\n[output truncated: {self.dropped} characters dropped]"
        return value


class _Invocation:
    """Dual-timer state for a single running process."""

    def __init__(self, proc: asyncio.subprocess.Process, config: EffectiveConfig) -> None:
        self._proc = proc
        self._config = config
        self._stdout = _OutputBuffer(config.max_output_chars)
        self._stderr = _OutputBuffer(config.max_output_chars)
        self._killed_by_idle = False
        self._result: asyncio.Future[InvocationResult] | None = None
        self._hard_timer: asyncio.TimerHandle | None = None
        self._idle_timer: asyncio.TimerHandle | None = None

    async def run(self) -> InvocationResult:
        loop = asyncio.get_running_loop()
        self._result = loop.create_future()
        self._hard_timer = loop.call_later(
            self._config.hard_timeout_ms / 1000, self._on_hard_timeout,
        )
        self._arm_idle()

        close_task = asyncio.create_task(self._watch_close())
        try:
            return await self._result
        finally:
            self._cancel_timers()
            if not close_task.done():
                close_task.cancel()
            await asyncio.gather(close_task, return_exceptions=True)

    # ── settlement ─────────────────────────────────────────────

    def _settle(self, result: InvocationResult) -> bool:
        """Set the result once; timers are cleared in the same step."""
        if self._result is None or self._result.done():
            return False
        self._cancel_timers()
        self._result.set_result(result)
        return True

    def _cancel_timers(self) -> None:
        if self._hard_timer is not None:
            self._hard_timer.cancel()
            self._hard_timer = None
        if self._idle_timer is not None:
            self._idle_timer.cancel()
            self._idle_timer = None

    # ── timers ─────────────────────────────────────────────────

    def _arm_idle(self) -> None:
        if self._config.idle_timeout_ms <= 0 or self._result is None or self._result.done():
            return
        if self._idle_timer is not None:
            self._idle_timer.cancel()
        self._idle_timer = asyncio.get_running_loop().call_later(
            self._config.idle_timeout_ms / 1000, self._on_idle_timeout,
        )

    def _on_hard_timeout(self) -> None:
        self._hard_timer = None
        _kill(self._proc)
        timeout_ms = self._config.hard_timeout_ms
        if self._settle(InvocationResult(
            text=f"{AGENT_NAME} timed out after {timeout_ms}ms",
            is_error=True,
            outcome=Outcome.HARD_TIMEOUT,
        )):
            logger.warning(
                "cursor-agent pid=%s killed by hard timeout (%dms)",
                self._proc.pid, timeout_ms,
            )

    def _on_idle_timeout(self) -> None:
        self._idle_timer = None
        self._killed_by_idle = True
        logger.info(
            "cursor-agent pid=%s idle for %dms (stdout chars=%d); killing",
            self._proc.pid, self._config.idle_timeout_ms, len(self._stdout),
        )
        _kill(self._proc)

    # ── streams ────────────────────────────────────────────────

    def _on_stdout(self, text: str) -> None:
        self._stdout.append(text)
        self._arm_idle()

    async def _pump(self, stream: asyncio.StreamReader | None, sink) -> None:
        if stream is None:
            return
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        while True:
            chunk = await stream.read(_READ_CHUNK)
            if not chunk:
                break
            sink(decoder.decode(chunk))
        tail = decoder.decode(b"", final=True)
        if tail:
            sink(tail)

    async def _watch_close(self) -> None:
        await asyncio.gather(
            self._pump(self._proc.stdout, self._on_stdout),
            self._pump(self._proc.stderr, self._stderr.append),
        )
        code = await self._proc.wait()
        logger.debug(
            "cursor-agent exit: code=%s stdout chars=%d stderr chars=%d",
            code, len(self._stdout), len(self._stderr),
        )
        self._settle(self._classify(code))

    def _classify(self, code: int | None) -> InvocationResult:
        out = self._stdout.text
        if code == 0:
            return InvocationResult(text=out or NO_OUTPUT)
        if self._killed_by_idle and len(self._stdout):
            # Partial output before going idle counts as success.
            return InvocationResult(text=out, outcome=Outcome.PARTIAL)

        header = f"{AGENT_NAME} exited with code {_exit_code_label(code)}"
        outcome = Outcome.NONZERO_EXIT
        if self._killed_by_idle:
            header += f" after {self._config.idle_timeout_ms}ms without output"
            outcome = Outcome.IDLE_TIMEOUT
        return InvocationResult(
            text=f"{header}\n{self._stderr.text or out or NO_OUTPUT}",
            is_error=True,
            outcome=outcome,
        )


class AgentInvoker:
    """Runs cursor-agent for tool calls.

    invoke() never raises for process failures; every failure path
    resolves to an InvocationResult with is_error=True.
    """

    def __init__(self, settings: AgentSettings | None = None) -> None:
        self._settings = settings or AgentSettings()

    @property
    def settings(self) -> AgentSettings:
        return self._settings

    def build_command(self, request: InvocationRequest) -> tuple[EffectiveConfig, list[str]]:
        """Resolve configuration and the argv for a request (no I/O)."""
        config = resolve_config(
            self._settings,
            executable=request.executable,
            model=request.model,
            force=request.force,
            hard_timeout_ms=request.hard_timeout_ms,
            idle_timeout_ms=request.idle_timeout_ms,
        )
        argv = assemble_argv(
            request.argv,
            request.output_format,
            emit_print_flags=request.emit_print_flags,
            model=config.model,
            force=config.force,
        )
        return config, argv

    async def invoke(self, request: InvocationRequest) -> InvocationResult:
        config, argv = self.build_command(request)
        logger.debug("cursor-agent spawn: %s", shlex.join([config.executable, *argv]))

        try:
            proc = await asyncio.create_subprocess_exec(
                config.executable,
                *argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=request.cwd or self._settings.default_cwd or None,
                start_new_session=True,
            )
        except (OSError, ValueError) as exc:
            # ValueError: embedded NUL in argv, cwd or executable
            logger.debug("cursor-agent start failure: %s", exc)
            return self._start_failure(config.executable, argv, exc)

        async with _owned(proc):
            return await _Invocation(proc, config).run()

    def _start_failure(self, cmd: str, argv: list[str], exc: Exception) -> InvocationResult:
        text = (
            f'Failed to start "{cmd}": {exc}\n'
            f"Args: {json.dumps(argv)}\n"
        )
        if self._settings.executable_path:
            text += f"CURSOR_AGENT_PATH={self._settings.executable_path}\n"
        return InvocationResult(text=text, is_error=True, outcome=Outcome.START_FAILURE)
