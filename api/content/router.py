"""
Public website content endpoints (read-only).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from core import settings
from core.db import Database, get_database, within_deadline

from . import service

router = APIRouter()


@router.get("/banners")
async def get_banners(db: Database = Depends(get_database)) -> list[dict]:
    return await within_deadline(service.banners(db), settings.read_timeout_s())


@router.get("/contact")
async def get_contact(db: Database = Depends(get_database)) -> list[dict]:
    return await within_deadline(service.contacts(db), settings.read_timeout_s())


@router.get("/about")
async def get_about(db: Database = Depends(get_database)) -> dict:
    return await within_deadline(service.about(db), settings.read_timeout_s())


@router.get("/partners")
async def get_partners(db: Database = Depends(get_database)) -> list[dict]:
    return await within_deadline(service.partners(db), settings.read_timeout_s())


@router.get("/tuning")
async def get_tuning(db: Database = Depends(get_database)) -> list[dict]:
    return await within_deadline(service.tuning(db), settings.read_timeout_s())


@router.get("/service_offerings")
async def get_service_offerings(db: Database = Depends(get_database)) -> list[dict]:
    return await within_deadline(service.service_offerings(db), settings.read_timeout_s())


@router.get("/privacy_sections")
async def get_privacy_sections(db: Database = Depends(get_database)) -> list[dict]:
    return await within_deadline(service.privacy_sections(db), settings.read_timeout_s())


@router.get("/portfolio_items")
async def get_portfolio_items(db: Database = Depends(get_database)) -> list[dict]:
    return await within_deadline(service.portfolio_items(db), settings.read_timeout_s())


@router.get("/work_post")
async def get_work_posts(db: Database = Depends(get_database)) -> list[dict]:
    return await within_deadline(service.work_posts(db), settings.read_timeout_s())
