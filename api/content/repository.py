"""
Public content reads (raw SQL).

Several tables drifted between deployments, so some reads carry an ordered
list of equivalent queries and go through `core.cascade`.
"""

from __future__ import annotations

from typing import Any

from core import cascade, schema_probe
from core.db import Database

BANNER_QUERIES = (
    """
    SELECT id, section, title, COALESCE(to_jsonb(b)->>'image_url', to_jsonb(b)->>'image') AS image_url, priority
    FROM public.banners b
    ORDER BY priority ASC, id ASC
    """,
    """
    SELECT id, section, title, COALESCE(to_jsonb(b)->>'image_url', to_jsonb(b)->>'image') AS image_url, priority
    FROM banners b
    ORDER BY priority ASC, id ASC
    """,
)

CONTACT_QUERIES = (
    """
    SELECT id, phone_number, address, description, email, work_schedule
    FROM public.contact
    ORDER BY id ASC
    """,
    """
    SELECT id, phone_number, address, description, NULL::text AS email, NULL::text AS work_schedule
    FROM public.contact_page
    ORDER BY id ASC
    """,
)

_TUNING_COLUMNS = (
    "to_jsonb(t)->>'brand' AS brand, to_jsonb(t)->>'model' AS model, {title}, card_image_url, "
    "{full_image_url}, {description}, card_description, full_description, video_image_url, video_link, "
    "to_jsonb(t)->>'price' AS price, {timestamps}"
)
# Older tables have `title` instead of `description`.
_NO_TITLE = {"title": "NULL::text AS title", "description": "description"}
_TITLE = {"title": "title", "description": "title AS description"}
_TIMESTAMPS = "created_at, updated_at"
_NOW_TIMESTAMPS = "NOW() AS created_at, NOW() AS updated_at"


def _tuning_query(
    table: str,
    variant: dict[str, str],
    *,
    has_full_image: bool = True,
    ordered: bool = True,
) -> str:
    select_list = _TUNING_COLUMNS.format(
        full_image_url="full_image_url" if has_full_image else "NULL::jsonb AS full_image_url",
        timestamps=_TIMESTAMPS if ordered else _NOW_TIMESTAMPS,
        **variant,
    )
    if ordered:
        return f"SELECT id, {select_list} FROM {table} t ORDER BY created_at DESC, id DESC"
    return f"SELECT row_number() OVER () AS id, {select_list} FROM {table} t"


TUNING_QUERIES = (
    _tuning_query("public.tuning", _NO_TITLE),
    _tuning_query("public.tuning", _TITLE),
    _tuning_query("public.tuning", _NO_TITLE, has_full_image=False),
    _tuning_query("public.tuning", _TITLE, has_full_image=False),
    _tuning_query("public.tuning", _NO_TITLE, has_full_image=False, ordered=False),
    _tuning_query("public.tuning", _TITLE, has_full_image=False, ordered=False),
    # Legacy misspelt table name kept for databases created before the rename.
    _tuning_query("public.tunning", _NO_TITLE),
    _tuning_query("public.tunning", _TITLE),
)

SERVICE_OFFERING_QUERIES = (
    """
    SELECT id, service_type, title, detailed_description, gallery_images, price_text, position, created_at, updated_at
    FROM public.service_offerings
    ORDER BY position ASC, id ASC
    """,
    """
    SELECT id, service_type, title, detailed_description, gallery_images, price_text, position,
           NOW() AS created_at, NOW() AS updated_at
    FROM public.service_offerings
    ORDER BY position ASC, id ASC
    """,
    """
    SELECT id, service_type, title, detailed_description, NULL::jsonb AS gallery_images, price_text, position,
           NOW() AS created_at, NOW() AS updated_at
    FROM public.service_offerings
    ORDER BY position ASC, id ASC
    """,
)

WORK_POST_TABLES = ("work_post", "blog_posts")


def _all_rows(db: Database, timeout: float | None):
    async def run(sql: str) -> list[dict[str, Any]]:
        return await db.fetch_all(sql, timeout=timeout)

    return run


async def list_banners(db: Database, *, timeout: float | None = None) -> list[dict[str, Any]]:
    return await cascade.first_successful(BANNER_QUERIES, _all_rows(db, timeout), label="banners")


async def list_contacts(db: Database, *, timeout: float | None = None) -> list[dict[str, Any]]:
    return await cascade.first_successful(CONTACT_QUERIES, _all_rows(db, timeout), label="contact")


async def list_tuning(db: Database, *, timeout: float | None = None) -> list[dict[str, Any]]:
    return await cascade.first_successful(TUNING_QUERIES, _all_rows(db, timeout), label="tuning")


async def list_service_offerings(db: Database, *, timeout: float | None = None) -> list[dict[str, Any]]:
    return await cascade.first_successful(
        SERVICE_OFFERING_QUERIES,
        _all_rows(db, timeout),
        label="service offerings",
    )


async def list_partners(db: Database, *, timeout: float | None = None) -> list[dict[str, Any]]:
    return await db.fetch_all("SELECT id, logo_url FROM public.partners ORDER BY id ASC", timeout=timeout)


async def list_privacy_sections(db: Database, *, timeout: float | None = None) -> list[dict[str, Any]]:
    return await db.fetch_all(
        """
        SELECT id, title, description, position
        FROM public.privacy_sections
        ORDER BY position ASC, id ASC
        """,
        timeout=timeout,
    )


async def list_portfolio_items(db: Database, *, timeout: float | None = None) -> list[dict[str, Any]]:
    return await db.fetch_all(
        """
        SELECT id, brand, title, image_url, description, youtube_link, created_at
        FROM public.portfolio_items
        ORDER BY created_at DESC, id DESC
        """,
        timeout=timeout,
    )


async def get_about_page(db: Database, *, timeout: float | None = None) -> dict[str, Any] | None:
    if not await schema_probe.table_exists(db, "about_page", timeout=timeout):
        return None
    return await db.fetch_one(
        """
        SELECT id, banner_title, banner_image_url, history_description, mission_description,
               video_url, mission_image_url
        FROM public.about_page
        ORDER BY id ASC
        LIMIT 1
        """,
        timeout=timeout,
    )


async def list_about_metrics(db: Database, about_id: int, *, timeout: float | None = None) -> list[dict[str, Any]]:
    if not await schema_probe.table_exists(db, "about_metrics", timeout=timeout):
        return []
    return await db.fetch_all(
        """
        SELECT id, metric_key, metric_value, metric_label, position
        FROM public.about_metrics
        WHERE about_id = $1
        ORDER BY position ASC, id ASC
        """,
        about_id,
        timeout=timeout,
    )


async def list_about_sections(db: Database, about_id: int, *, timeout: float | None = None) -> list[dict[str, Any]]:
    if not await schema_probe.table_exists(db, "about_sections", timeout=timeout):
        return []
    return await db.fetch_all(
        """
        SELECT id, section_key, title, description, position
        FROM public.about_sections
        WHERE about_id = $1
        ORDER BY position ASC, id ASC
        """,
        about_id,
        timeout=timeout,
    )


def work_post_query(table: str, *, has_gallery_images: bool) -> str:
    gallery = "gallery_images" if has_gallery_images else "NULL::jsonb AS gallery_images"
    return f"""
        SELECT id, title_model, card_image_url, full_image_url, card_description, work_list,
               full_description, video_image_url, video_link, {gallery}, created_at, updated_at
        FROM public.{table}
        ORDER BY created_at DESC, id DESC
    """


async def list_work_posts(db: Database, *, timeout: float | None = None) -> list[dict[str, Any]]:
    table = await schema_probe.resolve_preferred_table(db, WORK_POST_TABLES, timeout=timeout)
    has_gallery_images = await schema_probe.column_exists(db, table, "gallery_images", timeout=timeout)
    return await db.fetch_all(work_post_query(table, has_gallery_images=has_gallery_images), timeout=timeout)
