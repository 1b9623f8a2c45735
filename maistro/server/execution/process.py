"""Async runner for the agent CLI.

One step is one process: ``/bin/bash -c "<quoted command line>"`` with the
parent environment plus ``FORCE_COLOR=true``.  Stdout and stderr are read
concurrently and every decoded chunk is handed to the output sink as soon as
it arrives.
"""

from __future__ import annotations

import asyncio
import codecs
import logging
import os
import shlex
import shutil
from collections.abc import Awaitable, Callable, Sequence

from maistro.server.execution.errors import CommandFailedError, SpawnFailedError, StepTimeoutError

logger = logging.getLogger(__name__)

OutputSink = Callable[[str], Awaitable[None]]

_CHUNK_SIZE = 4096

# Shell exit codes for "not found" and "not executable".
_SPAWN_EXIT_CODES = (126, 127)


class ProcessRunner:
    """Execute agent CLI commands asynchronously, streaming their output."""

    def __init__(self, shell: str = "/bin/bash", timeout: float | None = None) -> None:
        self._shell = shell
        self._timeout = timeout

    @property
    def timeout(self) -> float | None:
        return self._timeout

    def build_command(self, executable: str, args: Sequence[str]) -> str:
        return shlex.join([executable, *args])

    async def run(self, executable: str, args: Sequence[str], on_output: OutputSink) -> None:
        """Run *executable* with *args* to completion.

        Raises ``SpawnFailedError`` when the executable cannot be resolved or
        started, ``CommandFailedError`` on a non-zero exit and
        ``StepTimeoutError`` when the optional watchdog fires.
        """
        if shutil.which(executable) is None:
            msg = f"Agent executable not found: {executable}"
            raise SpawnFailedError(msg)

        command = self.build_command(executable, args)
        logger.info("Executing: %s", command)
        try:
            process = await asyncio.create_subprocess_exec(
                self._shell,
                "-c",
                command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env={**os.environ, "FORCE_COLOR": "true"},
            )
        except OSError as exc:
            msg = f"Failed to start {executable}: {exc}"
            raise SpawnFailedError(msg) from exc

        stderr_parts: list[str] = []
        pumps = asyncio.gather(
            _pump(process.stdout, on_output, "stdout"),
            _pump(process.stderr, on_output, "stderr", collect=stderr_parts),
        )

        async def _finish() -> int:
            await pumps
            return await process.wait()

        # The watchdog covers the exit too: a child may close its pipes and keep running.
        finish = asyncio.ensure_future(_finish())
        try:
            returncode = await asyncio.wait_for(asyncio.shield(finish), timeout=self._timeout)
        except TimeoutError:
            logger.warning("Step exceeded %ss; killing pid %s", self._timeout, process.pid)
            process.kill()
            await process.wait()
            finish.cancel()
            pumps.cancel()
            raise StepTimeoutError(self._timeout or 0, "".join(stderr_parts)) from None
        except asyncio.CancelledError:
            if process.returncode is None:
                process.kill()
                await process.wait()
            finish.cancel()
            pumps.cancel()
            raise

        stderr = "".join(stderr_parts)
        logger.debug("Process %s exited with code %s", process.pid, returncode)
        if returncode in _SPAWN_EXIT_CODES:
            msg = f"Failed to start {executable} (exit code {returncode}). Error output: {stderr}"
            raise SpawnFailedError(msg)
        if returncode != 0:
            raise CommandFailedError(returncode, stderr)


async def _pump(
    stream: asyncio.StreamReader | None,
    on_output: OutputSink,
    label: str,
    collect: list[str] | None = None,
) -> None:
    if stream is None:
        return
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    while True:
        data = await stream.read(_CHUNK_SIZE)
        text = decoder.decode(data, final=not data)
        if text:
            logger.debug("[%s] %s", label, text)
            if collect is not None:
                collect.append(text)
            await on_output(text)
        if not data:
            return
