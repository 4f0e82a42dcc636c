"""Run external tools and collect their merged console output."""

import asyncio
import logging
from typing import Optional

logger = logging.getLogger(__name__)


async def _collect(
    proc: asyncio.subprocess.Process,
    stdin_data: Optional[bytes],
    timeout: float,
) -> tuple[int, str]:
    try:
        stdout, _ = await asyncio.wait_for(
            proc.communicate(input=stdin_data), timeout=timeout,
        )
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        return -1, "Command timed out"

    return (
        proc.returncode or 0,
        stdout.decode("utf-8", errors="replace").strip(),
    )


async def run_cmd(
    *args: str,
    stdin_text: Optional[str] = None,
    timeout: float = 30.0,
) -> tuple[int, str]:
    """Run an argv command and return (returncode, stdout+stderr).

    Never raises on a non-zero exit or a missing executable; callers decide
    what the output means.
    """
    stdin_data = stdin_text.encode() if stdin_text is not None else None
    try:
        proc = await asyncio.create_subprocess_exec(
            *args,
            stdin=asyncio.subprocess.PIPE if stdin_data is not None else asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )
    except OSError as e:
        logger.warning(f"Could not start {args[0] if args else '?'}: {e}")
        return -1, f"Could not start {args[0] if args else 'command'}: {e}"
    return await _collect(proc, stdin_data, timeout)


async def run_shell(
    line: str,
    stdin_text: Optional[str] = None,
    timeout: float = 30.0,
) -> tuple[int, str]:
    """Run a command line through the system shell.

    Only used for user-supplied custom templates, which may carry arbitrary
    shell syntax.
    """
    stdin_data = stdin_text.encode() if stdin_text is not None else None
    try:
        proc = await asyncio.create_subprocess_shell(
            line,
            stdin=asyncio.subprocess.PIPE if stdin_data is not None else asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )
    except OSError as e:
        logger.warning(f"Could not start shell: {e}")
        return -1, f"Could not start shell: {e}"
    return await _collect(proc, stdin_data, timeout)
