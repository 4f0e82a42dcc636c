"""Job lifecycle: one workflow in flight per target database."""

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from ..config import settings
from ..models.job import (
    JobRecord,
    JobRequest,
    JobStatus,
    RecoveryJob,
    WorkflowStage,
)
from ..recovery.engine import RecoveryWorkflowEngine
from ..utils.service_control import ServiceController
from .template_store import CommandTemplateStore

logger = logging.getLogger(__name__)


class JobConflictError(Exception):
    """A job is already running against the same database file."""


class UnknownJobError(KeyError):
    pass


def build_engine() -> RecoveryWorkflowEngine:
    return RecoveryWorkflowEngine(
        store=CommandTemplateStore(settings.settings_file),
        services=ServiceController(settings.service_names),
        rename_attempts=settings.rename_attempts,
        rename_delay=settings.rename_delay,
        tool_timeout=settings.tool_timeout,
        keep_history_in_temp=settings.keep_history_in_temp,
    )


def _target_key(db_path: str) -> str:
    return str(Path(db_path).expanduser().resolve()).lower()


class JobManager:
    def __init__(self, engine_factory: Callable[[], RecoveryWorkflowEngine] = build_engine):
        self._engine_factory = engine_factory
        self._jobs: dict[str, JobRecord] = {}
        self._tasks: dict[str, asyncio.Task] = {}
        self._active_targets: dict[str, str] = {}
        self._progress_listeners: dict[str, list[Callable]] = {}

    def create_job(self, request: JobRequest) -> RecoveryJob:
        key = _target_key(request.db_path)
        if key in self._active_targets:
            raise JobConflictError(
                f"Job {self._active_targets[key]} is already running on {request.db_path}"
            )
        job = RecoveryJob.create(request, archive_extension=settings.archive_extension)
        self._jobs[job.id] = JobRecord(
            id=job.id, operation=job.operation, db_path=str(job.db_path),
        )
        self._active_targets[key] = job.id
        return job

    def get_job(self, job_id: str) -> Optional[JobRecord]:
        return self._jobs.get(job_id)

    def add_progress_listener(self, job_id: str, callback: Callable) -> None:
        if job_id not in self._jobs:
            raise UnknownJobError(job_id)
        self._progress_listeners.setdefault(job_id, []).append(callback)

    def remove_progress_listener(self, job_id: str, callback: Callable) -> None:
        listeners = self._progress_listeners.get(job_id, [])
        if callback in listeners:
            listeners.remove(callback)

    async def start_job(self, job: RecoveryJob) -> None:
        task = asyncio.create_task(self._run_job(job))
        self._tasks[job.id] = task

    async def wait(self, job_id: str) -> Optional[JobRecord]:
        task = self._tasks.get(job_id)
        if task:
            await task
        return self._jobs.get(job_id)

    async def _run_job(self, job: RecoveryJob) -> None:
        record = self._jobs[job.id]
        record.status = JobStatus.RUNNING
        await self._notify_progress(record)

        async def on_stage(stage: WorkflowStage) -> None:
            record.stage = stage
            await self._notify_progress(record)

        try:
            engine = self._engine_factory()
            result = await engine.run(job, on_stage=on_stage)
            record.result = result
            record.stage = result.stage
            record.status = JobStatus.COMPLETED if result.success else JobStatus.FAILED
        except Exception as e:
            logger.exception(f"Job {job.id} crashed")
            record.status = JobStatus.FAILED
            record.error = str(e)
        finally:
            record.completed_at = datetime.now()
            self._active_targets.pop(_target_key(str(job.db_path)), None)
            await self._notify_progress(record)

    async def _notify_progress(self, record: JobRecord) -> None:
        for cb in list(self._progress_listeners.get(record.id, [])):
            try:
                await cb(record)
            except Exception as e:
                logger.debug(f"Progress listener failed: {e}")


# Singleton
job_manager = JobManager()
