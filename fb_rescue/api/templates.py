"""Command template endpoints."""

from fastapi import APIRouter

from ..config import settings
from ..models.templates import PLACEHOLDERS, TemplateSet
from ..services.template_store import CommandTemplateStore

router = APIRouter(prefix="/templates", tags=["templates"])


def _store() -> CommandTemplateStore:
    return CommandTemplateStore(settings.settings_file)


@router.get("")
async def get_templates():
    return _store().load().model_dump(by_alias=True)


@router.put("")
async def save_templates(templates: TemplateSet):
    return {"saved": _store().save(templates)}


@router.post("/reset")
async def reset_templates():
    return _store().reset_to_default().model_dump(by_alias=True)


@router.get("/placeholders")
async def list_placeholders():
    return {"placeholders": [f"{{{name}}}" for name in PLACEHOLDERS]}
