"""Async helpers for running external commands."""

import asyncio
import logging
import shlex
from pathlib import Path

import aiofiles

from ..exceptions import CommandError
from .types import DEFAULT_CHUNK_SIZE

logger = logging.getLogger(__name__)

PIPE = asyncio.subprocess.PIPE
DEVNULL = asyncio.subprocess.DEVNULL

# Grace period for a killed child to release its pipes.
KILL_WAIT_SECONDS = 5.0


async def _spawn(
    argv: list[str], stdin: int = DEVNULL
) -> asyncio.subprocess.Process:
    """Start a child process with stdout and stderr piped."""
    logger.debug("Running: %s", shlex.join(argv))
    try:
        return await asyncio.create_subprocess_exec(
            *argv, stdin=stdin, stdout=PIPE, stderr=PIPE
        )
    except OSError as e:
        raise CommandError(argv, 127, str(e)) from e


async def _finish(
    proc: asyncio.subprocess.Process, argv: list[str], stderr: bytes
) -> None:
    """Wait for the process and raise if it failed."""
    returncode = await proc.wait()
    if returncode != 0:
        raise CommandError(argv, returncode, stderr.decode("utf-8", errors="replace"))


async def _kill(proc: asyncio.subprocess.Process) -> None:
    """Kill the child and wait a bounded time for its pipes to close.

    `wait()` only returns once stdout and stderr are closed, and a
    descendant of the child can keep them open after the child is gone.
    """
    if proc.returncode is None:
        proc.kill()
    try:
        await asyncio.wait_for(proc.wait(), KILL_WAIT_SECONDS)
    except asyncio.TimeoutError:
        logger.warning(
            "Process %d was killed but its output is still held open", proc.pid
        )


async def run_command(argv: list[str]) -> str:
    """Run a command to completion and return its stdout.

    Args:
        argv: Program and arguments

    Returns:
        Decoded standard output

    Raises:
        CommandError: If the command cannot be started or exits non-zero
    """
    proc = await _spawn(argv)
    try:
        stdout, stderr = await proc.communicate()
    except asyncio.CancelledError:
        await _kill(proc)
        raise
    await _finish(proc, argv, stderr)
    return stdout.decode("utf-8", errors="replace")


async def stream_to_file(
    argv: list[str], dest: Path, chunk_size: int = DEFAULT_CHUNK_SIZE
) -> int:
    """Run a command and write its stdout to a file in chunks.

    Args:
        argv: Program and arguments
        dest: File to create
        chunk_size: Size of chunks to copy

    Returns:
        Number of bytes written

    Raises:
        CommandError: If the command cannot be started or exits non-zero
    """
    proc = await _spawn(argv)
    stderr_task = asyncio.ensure_future(proc.stderr.read())
    written = 0
    try:
        async with aiofiles.open(dest, "wb") as f:
            while True:
                chunk = await proc.stdout.read(chunk_size)
                if not chunk:
                    break
                await f.write(chunk)
                written += len(chunk)
        stderr = await stderr_task
    except BaseException:
        stderr_task.cancel()
        await _kill(proc)
        raise

    await _finish(proc, argv, stderr)
    logger.debug("Wrote %d bytes to %s", written, dest)
    return written


async def stream_from_file(
    argv: list[str], source: Path, chunk_size: int = DEFAULT_CHUNK_SIZE
) -> str:
    """Run a command with a file streamed to its stdin.

    Args:
        argv: Program and arguments
        source: File to send
        chunk_size: Size of chunks to copy

    Returns:
        Decoded standard output of the command

    Raises:
        CommandError: If the command cannot be started or exits non-zero
    """
    proc = await _spawn(argv, stdin=PIPE)
    # Drain output while writing so neither side blocks on a full pipe.
    output_task = asyncio.gather(proc.stdout.read(), proc.stderr.read())
    sent = 0
    try:
        try:
            async with aiofiles.open(source, "rb") as f:
                while True:
                    chunk = await f.read(chunk_size)
                    if not chunk:
                        break
                    proc.stdin.write(chunk)
                    await proc.stdin.drain()
                    sent += len(chunk)
        except (BrokenPipeError, ConnectionResetError):
            # The exit status below tells whether this was a failure.
            logger.debug("%s closed stdin after %d bytes", argv[0], sent)
        finally:
            proc.stdin.close()
        stdout, stderr = await output_task
    except BaseException:
        output_task.cancel()
        await _kill(proc)
        raise

    await _finish(proc, argv, stderr)
    logger.debug("Sent %d bytes from %s", sent, source)
    return stdout.decode("utf-8", errors="replace")
