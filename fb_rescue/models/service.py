"""Engine service and tool discovery models."""

from enum import Enum
from typing import Optional
from pydantic import BaseModel


class ServiceState(str, Enum):
    RUNNING = "running"
    STOPPED = "stopped"
    UNKNOWN = "unknown"


class ServiceStatus(BaseModel):
    state: ServiceState = ServiceState.UNKNOWN
    service: Optional[str] = None


class BinCheck(BaseModel):
    bin_dir: str
    ok: bool = False
    has_isql: bool = False
    has_gfix: bool = False
    has_gbak: bool = False


class BinDetection(BaseModel):
    found: bool = False
    bin_dir: str = ""
