"""
Consultation lead persistence (raw SQL).
"""

from __future__ import annotations

from core.db import Database

LEAD_COLUMNS = """
    id, first_name, last_name, phone, service_type, car_model,
    preferred_call_time, comments, status, created_at
"""


async def insert_consultation(
    db: Database,
    *,
    first_name: str,
    last_name: str,
    phone: str,
    service_type: str,
    car_model: str | None,
    preferred_call_time: str | None,
    comments: str | None,
    timeout: float | None = None,
) -> dict:
    row = await db.fetch_one(
        """
        INSERT INTO public.consultations
            (first_name, last_name, phone, service_type, car_model, preferred_call_time, comments, status)
        VALUES ($1, $2, $3, $4, $5, $6, $7, 'new')
        RETURNING id, created_at
        """,
        first_name,
        last_name,
        phone,
        service_type,
        car_model,
        preferred_call_time,
        comments,
        timeout=timeout,
    )
    if row is None:
        raise RuntimeError("Failed to insert consultation.")
    return row


async def list_consultations(db: Database, *, status: str = "", timeout: float | None = None) -> list[dict]:
    if status:
        return await db.fetch_all(
            f"""
            SELECT {LEAD_COLUMNS}
            FROM public.consultations
            WHERE status = $1
            ORDER BY created_at DESC, id DESC
            """,
            status,
            timeout=timeout,
        )
    return await db.fetch_all(
        f"""
        SELECT {LEAD_COLUMNS}
        FROM public.consultations
        ORDER BY created_at DESC, id DESC
        """,
        timeout=timeout,
    )
