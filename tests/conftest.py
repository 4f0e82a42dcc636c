"""
Shared test fixtures and fakes for pytest
"""
from datetime import datetime
from pathlib import Path

import pytest

from fb_rescue.models.job import JobRequest, Operation, RecoveryJob
from fb_rescue.recovery.engine import RecoveryWorkflowEngine
from fb_rescue.services.template_store import CommandTemplateStore
from fb_rescue.utils.firebird_paths import tool_path

STAMP_TIME = datetime(2024, 1, 1, 12, 0, 0)
BACKUP_DONE = "gbak:closing file, committing, and finishing. 2048 bytes written"
RESTORE_DONE = "gbak:finishing, closing, and going home"


def tool_kind(argv: list[str]) -> str:
    """Tell which default template produced an argv."""
    name = Path(argv[0]).name.lower()
    if name.startswith("isql"):
        return "test"
    if "-backup" in argv:
        return "backup"
    if "-create" in argv:
        return "restore"
    if "-mend" in argv:
        return "mend"
    return "check"


def gbak_backup_ok(argv):
    # gbak -backup ... -y LOG OLD_DB FBK
    source, archive = Path(argv[8]), Path(argv[9])
    archive.write_bytes(b"FBK:" + source.read_bytes())
    return 0, BACKUP_DONE


def gbak_restore_ok(argv):
    # gbak -create -z -v -y LOG FBK NEW_DB
    Path(argv[7]).write_bytes(b"rebuilt")
    return 0, RESTORE_DONE


class FakeRunner:
    """Stands in for run_cmd; records every call."""

    def __init__(self, **behaviours):
        self.behaviours = behaviours
        self.calls = []

    async def __call__(self, *argv, stdin_text=None, timeout=None):
        kind = tool_kind(list(argv))
        self.calls.append((kind, list(argv), stdin_text))
        behaviour = self.behaviours.get(kind)
        if behaviour is None:
            return 0, ""
        return behaviour(list(argv))

    @property
    def kinds(self):
        return [kind for kind, _, _ in self.calls]


class FakeShellRunner:
    def __init__(self, rc=0, output=""):
        self.rc = rc
        self.output = output
        self.lines = []

    async def __call__(self, line, stdin_text=None, timeout=None):
        self.lines.append(line)
        return self.rc, self.output


class FakeServices:
    def __init__(self):
        self.calls = []

    async def stop_all(self):
        self.calls.append("stop")

    async def start_all(self):
        self.calls.append("start")


@pytest.fixture
def db_file(tmp_path):
    """A live database file with known content."""
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    db = data_dir / "APP.DB"
    db.write_bytes(b"original")
    return db


@pytest.fixture
def bin_dir(tmp_path):
    """A directory holding placeholder isql, gfix and gbak binaries."""
    path = tmp_path / "bin"
    path.mkdir()
    for tool in ("isql", "gfix", "gbak"):
        tool_path(path, tool).write_text("")
    return path


@pytest.fixture
def store(tmp_path):
    return CommandTemplateStore(tmp_path / "config" / "settings.json")


@pytest.fixture
def services():
    return FakeServices()


@pytest.fixture
def make_job(db_file, bin_dir):
    def _make(operation=Operation.BACKUP_RESTORE, db_path=None, bin_path=None):
        request = JobRequest(
            operation=operation,
            db_path=str(db_path or db_file),
            bin_dir=str(bin_path or bin_dir),
            user="SYSDBA",
            password="masterkey",
        )
        return RecoveryJob.create(request, now=STAMP_TIME)
    return _make


@pytest.fixture
def make_engine(store, services):
    def _make(runner, **kwargs):
        kwargs.setdefault("services", services)
        kwargs.setdefault("rename_attempts", 3)
        kwargs.setdefault("rename_delay", 0)
        return RecoveryWorkflowEngine(store=store, runner=runner, **kwargs)
    return _make
