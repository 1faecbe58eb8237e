# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Pipeline Executor - Run ``dump | compress`` in one shell and stream it to disk.

This module owns the process handle for a pipeline's whole lifetime:
1. Launch the shell in its own process group with the env overlay
2. Stream stdout into an ArchiveWriter, keep a bounded stderr tail
3. Enforce the deadline by signalling the whole group
4. Classify the outcome and remove partial archives on every failure
"""

import asyncio
import os
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import structlog
from ulid import ULID

from dumpstream.archive.writer import ArchiveWriter, new_archive_path, remove_archive
from dumpstream.config import ExecutorSettings, PipelineSpec
from dumpstream.exceptions import (
    DumpStreamError,
    DumpTimeoutError,
    LaunchError,
    SinkError,
    ToolFailureError,
)
from dumpstream.pipeline.reaper import HAS_PROCESS_GROUPS, terminate

logger = structlog.get_logger()

PIPEFAIL_PREAMBLE = "set -o pipefail; "

# shell -> whether `set -o pipefail` succeeds in it
_PIPEFAIL_SUPPORT: dict[str, bool] = {}

_STDERR_READ_SIZE = 4096


@dataclass
class PipelineResult:
    """Outcome of one pipeline run."""

    run_id: str  # ULID
    engine: str
    path: Path | None = None
    error: DumpStreamError | None = None
    stderr: str = ""
    exit_code: int | None = None
    bytes_written: int = 0
    duration_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None and self.path is not None

    def unwrap(self) -> Path:
        """Return the archive path or raise the classified error."""
        if self.error is not None:
            raise self.error
        if self.path is None:
            raise ToolFailureError("Pipeline produced no archive")
        return self.path


@dataclass
class RunningPipeline:
    """
    Live state of a launched pipeline.

    Mutated only by the timeout callback (sets ``timed_out``) and by the
    completion path in ``run_pipeline`` (disarms the timer).
    """

    process: Any
    pgid: int
    timeout_seconds: float | None = None
    timer: asyncio.TimerHandle | None = None
    timed_out: bool = False

    def arm(self, loop: asyncio.AbstractEventLoop) -> None:
        if self.timeout_seconds and self.timeout_seconds > 0:
            self.timer = loop.call_later(self.timeout_seconds, self._expire)

    def disarm(self) -> None:
        if self.timer is not None:
            self.timer.cancel()
            self.timer = None

    def _expire(self) -> None:
        self.timer = None
        if self.process.returncode is not None:
            # Exited before the deadline; the pid may already be reused
            return
        self.timed_out = True
        logger.warning(
            "pipeline_timeout",
            pid=self.pgid,
            timeout_seconds=self.timeout_seconds,
        )
        terminate(self.process)


async def run_pipeline(
    spec: PipelineSpec,
    settings: ExecutorSettings | None = None,
) -> PipelineResult:
    """
    Run a pipeline and stream its stdout into a fresh archive.

    Failures are returned, not raised: the result carries a LaunchError,
    DumpTimeoutError, ToolFailureError or SinkError, and the archive file
    never exists afterwards. Cancelling the calling task terminates the
    process group, removes the archive and re-raises.

    Args:
        spec: Pipeline to run
        settings: Executor settings (default: ExecutorSettings())

    Returns:
        PipelineResult with the archive path on success
    """
    settings = settings or ExecutorSettings()
    run_id = str(ULID())
    log = logger.bind(run_id=run_id, engine=spec.engine)
    started = time.monotonic()

    path = new_archive_path(spec.prefix, spec.extension, settings.scratch_dir)

    launch_error: LaunchError | None = None
    try:
        process = await _launch(spec, settings)
    except LaunchError as e:
        launch_error = e
    except OSError as e:
        launch_error = LaunchError(
            f"Failed to start pipeline: {e}",
            details={"shell": settings.shell, "errno": e.errno},
        )

    if launch_error is not None:
        log.error("pipeline_launch_failed", shell=settings.shell, error=str(launch_error))
        return PipelineResult(
            run_id=run_id,
            engine=spec.engine,
            error=launch_error,
            duration_seconds=time.monotonic() - started,
        )

    running = RunningPipeline(
        process=process,
        pgid=process.pid,
        timeout_seconds=spec.timeout_seconds,
    )
    running.arm(asyncio.get_running_loop())

    log.info(
        "pipeline_started",
        pid=process.pid,
        path=str(path),
        timeout_seconds=spec.timeout_seconds,
        env_keys=sorted(spec.env),
    )

    stderr_task = asyncio.create_task(
        _collect_stderr(process.stderr, settings.stderr_limit)
    )
    sink = ArchiveWriter(path)
    sink_error: SinkError | None = None

    try:
        try:
            async with sink:
                await _pump(process.stdout, sink, settings.chunk_size)
                await sink.finalize()
        except SinkError as e:
            sink_error = e
            log.error("pipeline_sink_failed", path=str(path), error=str(e))
            terminate(process)
            await _drain(process.stdout, settings.chunk_size)

        exit_code = await process.wait()
        running.disarm()
        stderr_text = await stderr_task
    except BaseException:
        running.disarm()
        terminate(process)
        stderr_task.cancel()
        if sink.opened:
            remove_archive(path)
        log.warning("pipeline_aborted", path=str(path))
        raise

    duration = time.monotonic() - started
    error = _classify(spec, running, sink, sink_error, exit_code, stderr_text)

    if error is not None:
        if sink.opened:
            remove_archive(path)
        log.error(
            "pipeline_failed",
            error_type=type(error).__name__,
            exit_code=exit_code,
            duration=duration,
        )
        return PipelineResult(
            run_id=run_id,
            engine=spec.engine,
            error=error,
            stderr=stderr_text,
            exit_code=exit_code,
            bytes_written=sink.bytes_written,
            duration_seconds=duration,
        )

    log.info(
        "pipeline_completed",
        path=str(path),
        bytes_written=sink.bytes_written,
        duration=duration,
    )
    return PipelineResult(
        run_id=run_id,
        engine=spec.engine,
        path=path,
        stderr=stderr_text,
        exit_code=exit_code,
        bytes_written=sink.bytes_written,
        duration_seconds=duration,
    )


def _classify(
    spec: PipelineSpec,
    running: RunningPipeline,
    sink: ArchiveWriter,
    sink_error: SinkError | None,
    exit_code: int,
    stderr_text: str,
) -> DumpStreamError | None:
    """Map the finished pipeline onto the error taxonomy (None = success)."""
    diagnostic = stderr_text.strip()

    if running.timed_out:
        return DumpTimeoutError(
            f"Command timed out after {spec.timeout_seconds}s",
            details={"timeout_seconds": spec.timeout_seconds, "exit_code": exit_code},
        )

    if sink_error is not None:
        return sink_error

    if exit_code != 0:
        return ToolFailureError(
            f"Command failed (exit {exit_code}): {diagnostic}",
            details={"exit_code": exit_code, "stderr": diagnostic},
        )

    if sink.bytes_written == 0:
        return ToolFailureError(
            "Command produced no output",
            details={"exit_code": exit_code, "stderr": diagnostic},
        )

    return None


async def shell_supports_pipefail(shell: str) -> bool:
    """
    Check once per shell whether ``set -o pipefail`` is accepted.

    Raises:
        OSError: If the shell cannot be started
    """
    supported = _PIPEFAIL_SUPPORT.get(shell)
    if supported is None:
        probe = await asyncio.create_subprocess_exec(
            shell,
            "-c",
            "set -o pipefail",
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
        supported = await probe.wait() == 0
        _PIPEFAIL_SUPPORT[shell] = supported
    return supported


async def _launch(spec: PipelineSpec, settings: ExecutorSettings) -> Any:
    command = spec.command
    if settings.pipefail:
        if not await shell_supports_pipefail(settings.shell):
            raise LaunchError(
                f"Shell {settings.shell!r} does not support 'set -o pipefail'; "
                "install bash or set ExecutorSettings(shell=...)",
                details={"shell": settings.shell},
            )
        command = PIPEFAIL_PREAMBLE + command

    # Overlay on a copy; the parent environment is never touched
    env = {**os.environ, **spec.env}

    kwargs: dict = {}
    if HAS_PROCESS_GROUPS:
        kwargs["start_new_session"] = True
    else:
        kwargs["creationflags"] = subprocess.CREATE_NEW_PROCESS_GROUP

    return await asyncio.create_subprocess_exec(
        settings.shell,
        "-c",
        command,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        env=env,
        **kwargs,
    )


async def _pump(stream: asyncio.StreamReader, sink: ArchiveWriter, chunk_size: int) -> None:
    """Forward stdout to the sink chunk by chunk, in order."""
    while True:
        chunk = await stream.read(chunk_size)
        if not chunk:
            break
        await sink.write(chunk)


async def _drain(stream: asyncio.StreamReader, chunk_size: int) -> None:
    while await stream.read(chunk_size):
        pass


async def _collect_stderr(stream: asyncio.StreamReader, limit: int) -> str:
    """Accumulate stderr, keeping only the last ``limit`` bytes."""
    buffer = bytearray()
    while True:
        chunk = await stream.read(_STDERR_READ_SIZE)
        if not chunk:
            break
        buffer.extend(chunk)
        if len(buffer) > limit:
            del buffer[: len(buffer) - limit]
    return buffer.decode("utf-8", errors="replace")
