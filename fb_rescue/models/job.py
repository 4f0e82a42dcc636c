"""Recovery job models."""

from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional
from pydantic import BaseModel, Field
import uuid

STAMP_FORMAT = "%Y%m%d_%H%M%S"


class Operation(str, Enum):
    TEST = "test"
    CHECK = "check"
    MEND = "mend"
    BACKUP_RESTORE = "backup-restore"


class WorkflowStage(str, Enum):
    IDLE = "idle"
    SERVICE_STOPPING = "service_stopping"
    RENAMING = "renaming"
    TEST = "test"
    CHECK = "check"
    MEND = "mend"
    BACKUP = "backup"
    RESTORE = "restore"
    FINALIZING = "finalizing"
    SERVICE_STARTING = "service_starting"
    DONE = "done"
    ROLLED_BACK = "rolled_back"


class JobRequest(BaseModel):
    operation: Operation = Operation.CHECK
    db_path: str
    bin_dir: str
    user: str = "SYSDBA"
    password: str = Field(default="", repr=False)


class JobPaths(BaseModel):
    """Artifacts derived from the target path and the job stamp."""

    model_config = {"frozen": True}

    old_db: Path
    new_db: Path
    archive: Path
    temp_dir: Path
    log_backup: Path
    log_restore: Path


class RecoveryJob(BaseModel):
    model_config = {"frozen": True}

    id: str = Field(default_factory=lambda: uuid.uuid4().hex[:8])
    operation: Operation
    db_path: Path
    bin_dir: Path
    user: str
    password: str = Field(repr=False)
    stamp: str
    paths: JobPaths

    @classmethod
    def create(
        cls,
        request: JobRequest,
        now: Optional[datetime] = None,
        archive_extension: str = "FBK",
    ) -> "RecoveryJob":
        stamp = (now or datetime.now()).strftime(STAMP_FORMAT)
        db = Path(request.db_path)
        folder, base, ext = db.parent, db.stem, db.suffix
        temp_dir = folder / "TEMP"
        paths = JobPaths(
            old_db=folder / f"{base}_OLD_{stamp}{ext}",
            new_db=folder / f"{base}_NEW_{stamp}{ext}",
            archive=folder / f"{base}_{stamp}.{archive_extension}",
            temp_dir=temp_dir,
            log_backup=temp_dir / f"LOG_BKP_{stamp}.LOG",
            log_restore=temp_dir / f"LOG_RTR_{stamp}.LOG",
        )
        return cls(
            operation=request.operation,
            db_path=db,
            bin_dir=Path(request.bin_dir),
            user=request.user,
            password=request.password,
            stamp=stamp,
            paths=paths,
        )


class WorkflowResult(BaseModel):
    operation: Operation
    success: bool = False
    stage: WorkflowStage = WorkflowStage.IDLE
    failed_stage: Optional[WorkflowStage] = None
    report: str = ""
    output: str = ""
    caveats: list[str] = Field(default_factory=list)
    artifacts: dict[str, str] = Field(default_factory=dict)


class JobStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class JobRecord(BaseModel):
    """A job as tracked by the job manager."""

    id: str
    operation: Operation
    db_path: str
    status: JobStatus = JobStatus.PENDING
    stage: WorkflowStage = WorkflowStage.IDLE
    result: Optional[WorkflowResult] = None
    created_at: datetime = Field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None
    error: Optional[str] = None
