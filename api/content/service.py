"""
Public content shaping.

Rows come back from `repository` with nullable columns; these functions map
them to the JSON contract the website reads.
"""

from __future__ import annotations

from typing import Any

from core.db import Database
from core.projection import (
    first_non_blank,
    nullable_text,
    parse_performed_works,
    parse_string_array,
    text_or_empty,
    unique_non_blank,
)

from . import repository

DEFAULT_ABOUT_ID = 1


async def banners(db: Database, *, timeout: float | None = None) -> list[dict]:
    rows = await repository.list_banners(db, timeout=timeout)
    return [
        {
            "id": int(row["id"]),
            "section": str(row["section"]),
            "title": str(row["title"]),
            "image_url": str(row["image_url"] or ""),
            "priority": int(row["priority"]),
        }
        for row in rows
    ]


async def contacts(db: Database, *, timeout: float | None = None) -> list[dict]:
    rows = await repository.list_contacts(db, timeout=timeout)
    return [
        {
            "id": int(row["id"]),
            "phone_number": nullable_text(row["phone_number"]),
            "address": nullable_text(row["address"]),
            "description": nullable_text(row["description"]),
            "email": nullable_text(row["email"]),
            "work_schedule": nullable_text(row["work_schedule"]),
        }
        for row in rows
    ]


async def about(db: Database, *, timeout: float | None = None) -> dict[str, Any]:
    page_row = await repository.get_about_page(db, timeout=timeout)
    page = None
    if page_row is not None:
        page = {
            "id": int(page_row["id"]),
            "title": nullable_text(page_row["banner_title"]),
            "banner_image_url": nullable_text(page_row["banner_image_url"]),
            "intro_description": nullable_text(page_row["history_description"]),
            "mission_description": nullable_text(page_row["mission_description"]),
            "video_url": nullable_text(page_row["video_url"]),
            "mission_image_url": nullable_text(page_row["mission_image_url"]),
        }

    about_id = page["id"] if page is not None else DEFAULT_ABOUT_ID
    metric_rows = await repository.list_about_metrics(db, about_id, timeout=timeout)
    section_rows = await repository.list_about_sections(db, about_id, timeout=timeout)

    return {
        "page": page,
        "metrics": [
            {
                "id": int(row["id"]),
                "key": str(row["metric_key"]),
                "value": str(row["metric_value"]),
                "label": str(row["metric_label"]),
                "position": int(row["position"]),
            }
            for row in metric_rows
        ],
        "sections": [
            {
                "id": int(row["id"]),
                "key": str(row["section_key"]),
                "title": str(row["title"]),
                "description": str(row["description"]),
                "position": int(row["position"]),
            }
            for row in section_rows
        ],
    }


async def partners(db: Database, *, timeout: float | None = None) -> list[dict]:
    rows = await repository.list_partners(db, timeout=timeout)
    return [{"id": int(row["id"]), "logo_url": str(row["logo_url"])} for row in rows]


async def tuning(db: Database, *, timeout: float | None = None) -> list[dict]:
    rows = await repository.list_tuning(db, timeout=timeout)
    return [
        {
            "id": int(row["id"]),
            "brand": nullable_text(row["brand"]),
            "model": nullable_text(row["model"]),
            "title": nullable_text(row["title"]),
            "card_image_url": nullable_text(row["card_image_url"]),
            "full_image_url": parse_string_array(row["full_image_url"]),
            "price": nullable_text(row["price"]),
            "description": nullable_text(row["description"]),
            "card_description": nullable_text(row["card_description"]),
            "full_description": nullable_text(row["full_description"]),
            "video_image_url": nullable_text(row["video_image_url"]),
            "video_link": nullable_text(row["video_link"]),
            "created_at": row["created_at"],
            "updated_at": row["updated_at"],
        }
        for row in rows
    ]


async def service_offerings(db: Database, *, timeout: float | None = None) -> list[dict]:
    rows = await repository.list_service_offerings(db, timeout=timeout)
    return [
        {
            "id": int(row["id"]),
            "service_type": nullable_text(row["service_type"]),
            "title": nullable_text(row["title"]),
            "detailed_description": nullable_text(row["detailed_description"]),
            "gallery_images": parse_string_array(row["gallery_images"]),
            "price_text": nullable_text(row["price_text"]),
            "position": int(row["position"]),
            "created_at": row["created_at"],
            "updated_at": row["updated_at"],
        }
        for row in rows
    ]


async def privacy_sections(db: Database, *, timeout: float | None = None) -> list[dict]:
    rows = await repository.list_privacy_sections(db, timeout=timeout)
    return [
        {
            "id": int(row["id"]),
            "title": str(row["title"]),
            "description": str(row["description"]),
            "position": int(row["position"]),
        }
        for row in rows
    ]


async def portfolio_items(db: Database, *, timeout: float | None = None) -> list[dict]:
    rows = await repository.list_portfolio_items(db, timeout=timeout)
    return [
        {
            "id": int(row["id"]),
            "brand": nullable_text(row["brand"]),
            "title": str(row["title"]),
            "image_url": str(row["image_url"]),
            "description": nullable_text(row["description"]),
            "youtube_link": nullable_text(row["youtube_link"]),
            "created_at": row["created_at"],
        }
        for row in rows
    ]


def project_work_post(row: dict[str, Any]) -> dict[str, Any]:
    card_url = text_or_empty(row.get("card_image_url"))
    full_url = text_or_empty(row.get("full_image_url"))
    video_image = text_or_empty(row.get("video_image_url"))

    gallery_images = parse_string_array(row.get("gallery_images"))
    if not gallery_images:
        gallery_images = unique_non_blank([card_url, full_url, video_image])

    return {
        "id": int(row["id"]),
        "title": str(row["title_model"]),
        "description": text_or_empty(row.get("card_description")),
        "fullDescription": text_or_empty(row.get("full_description")),
        "imageUrl": first_non_blank(card_url, full_url, video_image),
        "videoUrl": text_or_empty(row.get("video_link")),
        "performedWorks": parse_performed_works(row.get("work_list")),
        "galleryImages": gallery_images,
    }


async def work_posts(db: Database, *, timeout: float | None = None) -> list[dict]:
    rows = await repository.list_work_posts(db, timeout=timeout)
    return [project_work_post(row) for row in rows]
