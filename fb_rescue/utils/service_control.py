"""Query and toggle the Firebird server service."""

import logging
import os
import re
from typing import Awaitable, Callable, Optional

from ..models.service import ServiceState, ServiceStatus
from .commands import run_cmd

logger = logging.getLogger(__name__)

Runner = Callable[..., Awaitable[tuple[int, str]]]

# sc query prints English or localized (pt-BR) state lines.
_SC_RUNNING = re.compile(r"(STATE|ESTADO)\s*:\s*4\s+(RUNNING|EM\s+EXECU)", re.IGNORECASE)
_SC_STOPPED = re.compile(r"(STATE|ESTADO)\s*:\s*1\s+(STOPPED|PARADO)", re.IGNORECASE)
_SC_ANY_STATE = re.compile(r"(STATE|ESTADO)\s*:\s*\d", re.IGNORECASE)

_SYSTEMD_RUNNING = {"active", "activating", "reloading"}


class ServiceController:
    """Start, stop and query a fixed list of service identities.

    The first identity the platform recognizes decides the reported state;
    stop and start go to every identity regardless.
    """

    def __init__(
        self,
        names: list[str],
        platform: Optional[str] = None,
        runner: Runner = run_cmd,
        timeout: float = 60.0,
    ):
        self.names = list(names)
        self.platform = platform or ("windows" if os.name == "nt" else "systemd")
        self._run = runner
        self.timeout = timeout

    async def query_state(self) -> ServiceState:
        return (await self.query_status()).state

    async def query_status(self) -> ServiceStatus:
        try:
            for name in self.names:
                state = await self._query_one(name)
                if state is not None:
                    return ServiceStatus(state=state, service=name)
        except Exception as e:
            logger.warning(f"Service query failed: {e}")
        return ServiceStatus()

    async def stop_all(self) -> None:
        await self._toggle_all("stop")

    async def start_all(self) -> None:
        await self._toggle_all("start")

    async def restart_all(self) -> None:
        await self.stop_all()
        await self.start_all()

    async def _query_one(self, name: str) -> Optional[ServiceState]:
        """Return the state of one identity, or None if it is not installed."""
        if self.platform == "windows":
            _, out = await self._run("sc", "query", name, timeout=self.timeout)
            if _SC_RUNNING.search(out):
                return ServiceState.RUNNING
            if _SC_STOPPED.search(out):
                return ServiceState.STOPPED
            if _SC_ANY_STATE.search(out):
                # START_PENDING, STOP_PENDING and friends
                return ServiceState.RUNNING
            return None

        rc, out = await self._run(
            "systemctl", "show", "-p", "LoadState", "-p", "ActiveState", name,
            timeout=self.timeout,
        )
        props = dict(
            line.split("=", 1) for line in out.splitlines() if "=" in line
        )
        load_state = props.get("LoadState", "").strip()
        if rc != 0 or not load_state or load_state == "not-found":
            return None
        if props.get("ActiveState", "").strip() in _SYSTEMD_RUNNING:
            return ServiceState.RUNNING
        return ServiceState.STOPPED

    async def _toggle_all(self, action: str) -> None:
        for name in self.names:
            if self.platform == "windows":
                cmd = ("net", action, name)
            else:
                cmd = ("systemctl", action, name)
            try:
                rc, out = await self._run(*cmd, timeout=self.timeout)
                logger.debug(f"{' '.join(cmd)} -> {rc}: {out}")
            except Exception as e:
                logger.info(f"Ignoring {action} failure for {name}: {e}")
