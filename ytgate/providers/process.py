"""Subprocess plumbing: bounded one-shot commands and piped stdout streams."""

import asyncio
import logging
from collections import deque
from typing import List, Optional, Sequence

from ..errors import ProviderUnavailable
from .base import MediaStream

logger = logging.getLogger(__name__)

STDERR_TAIL = 20


def _describe_failure(program: str, returncode: int, stderr_lines: Sequence[str]) -> str:
    detail = "\n".join(list(stderr_lines)[-6:]).strip()
    return detail or f"{program} exited with code {returncode}"


def _kill(process) -> None:
    if process is not None and process.returncode is None:
        try:
            process.kill()
        except ProcessLookupError:
            pass


async def _spawn(argv: Sequence[str]):
    try:
        return await asyncio.create_subprocess_exec(
            *argv,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            stdin=asyncio.subprocess.DEVNULL,
        )
    except FileNotFoundError:
        raise ProviderUnavailable(f"{argv[0]} is not installed or not in PATH")
    except OSError as e:
        raise ProviderUnavailable(f"Could not start {argv[0]}: {e}")


async def run_command(argv: Sequence[str], timeout: float) -> bytes:
    """Run ``argv`` to completion and return its stdout.

    The process is killed if it outlives ``timeout`` or if the awaiting task
    is cancelled.
    """
    process = await _spawn(argv)
    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout)
    except asyncio.TimeoutError:
        raise ProviderUnavailable(f"{argv[0]} timed out after {timeout:g}s")
    finally:
        if process.returncode is None:
            _kill(process)
            await process.wait()

    if process.returncode != 0:
        lines = stderr.decode("utf-8", "ignore").splitlines()
        raise ProviderUnavailable(_describe_failure(argv[0], process.returncode, lines))
    return stdout


class ProcessStream(MediaStream):
    """Pipes a child process's stdout through as an async byte stream.

    One process per stream, never reused. Release (reached on exhaustion, on
    errors and on ``aclose``) kills the process if it is still running and
    reaps it.
    """

    def __init__(self, argv: Sequence[str], chunk_size: int = 64 * 1024):
        super().__init__()
        self.argv: List[str] = list(argv)
        self.chunk_size = chunk_size
        self.process: Optional[asyncio.subprocess.Process] = None
        self._stderr_lines = deque(maxlen=STDERR_TAIL)
        self._stderr_task: Optional[asyncio.Task] = None

    @property
    def program(self) -> str:
        return self.argv[0]

    async def start(self) -> "ProcessStream":
        self.process = await _spawn(self.argv)
        # Drain stderr so a chatty child never blocks on a full pipe
        self._stderr_task = asyncio.ensure_future(self._drain_stderr())
        logger.debug("Started %s (pid %s)", self.program, self.process.pid)
        return self

    async def _drain_stderr(self):
        async for line in self.process.stderr:
            text = line.decode("utf-8", "ignore").strip()
            if text:
                self._stderr_lines.append(text)

    async def _next_chunk(self) -> Optional[bytes]:
        if self.process is None:
            return None
        chunk = await self.process.stdout.read(self.chunk_size)
        if chunk:
            return chunk

        returncode = await self.process.wait()
        if self._stderr_task is not None:
            try:
                await asyncio.wait_for(self._stderr_task, timeout=1)
            except asyncio.TimeoutError:
                pass
        if returncode != 0:
            raise ProviderUnavailable(
                _describe_failure(self.program, returncode, self._stderr_lines)
            )
        return None

    async def _release(self) -> None:
        process = self.process
        if process is None:
            return
        if process.returncode is None:
            logger.info("Terminating %s (pid %s)", self.program, process.pid)
            _kill(process)
        try:
            await asyncio.wait_for(process.wait(), timeout=5)
        except asyncio.TimeoutError:
            logger.warning("%s (pid %s) did not exit after kill", self.program, process.pid)
        finally:
            if self._stderr_task is not None and not self._stderr_task.done():
                self._stderr_task.cancel()
