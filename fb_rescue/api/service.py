"""Firebird service endpoints."""

from fastapi import APIRouter

from ..config import settings
from ..utils.service_control import ServiceController

router = APIRouter(prefix="/service", tags=["service"])


def _controller() -> ServiceController:
    return ServiceController(settings.service_names)


@router.get("/status")
async def get_status():
    return await _controller().query_status()


@router.post("/restart")
async def restart_service():
    controller = _controller()
    await controller.restart_all()
    return await controller.query_status()
