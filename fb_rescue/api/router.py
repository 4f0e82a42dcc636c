"""Aggregate all API sub-routers."""

from fastapi import APIRouter

from . import jobs, service, templates, tools, ws

api_router = APIRouter()

api_router.include_router(jobs.router)
api_router.include_router(service.router)
api_router.include_router(templates.router)
api_router.include_router(tools.router)
api_router.include_router(ws.router)
