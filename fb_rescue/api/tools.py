"""Firebird tool discovery endpoints."""

from fastapi import APIRouter

from ..models.service import BinCheck, BinDetection
from ..utils.firebird_paths import check_bin_dir, detect_bin_dir

router = APIRouter(prefix="/tools", tags=["tools"])


@router.get("/detect", response_model=BinDetection)
async def detect():
    return detect_bin_dir()


@router.get("/check", response_model=BinCheck)
async def check(bin_dir: str):
    return check_bin_dir(bin_dir)
