"""Data models."""

from .job import (
    JobPaths,
    JobRecord,
    JobRequest,
    JobStatus,
    Operation,
    RecoveryJob,
    WorkflowResult,
    WorkflowStage,
)
from .templates import TemplateSet
from .service import BinCheck, BinDetection, ServiceState, ServiceStatus

__all__ = [
    "JobPaths",
    "JobRecord",
    "JobRequest",
    "JobStatus",
    "Operation",
    "RecoveryJob",
    "WorkflowResult",
    "WorkflowStage",
    "TemplateSet",
    "BinCheck",
    "BinDetection",
    "ServiceState",
    "ServiceStatus",
]
