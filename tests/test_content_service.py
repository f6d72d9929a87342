import asyncpg
import pytest

from content import repository, service
from core.errors import NoCompatibleTable

from conftest import FakeDatabase


def _work_row(**overrides):
    row = {
        "id": 7,
        "title_model": "Tesla Model 3",
        "card_image_url": "",
        "full_image_url": "https://x/full.jpg",
        "card_description": " Stage 1 ",
        "work_list": '[{"step":"Diagnostics"},{"title":"Calibration"}]',
        "gallery_images": None,
        "full_description": None,
        "video_image_url": "",
        "video_link": "https://youtu.be/x",
    }
    row.update(overrides)
    return row


def test_work_post_image_falls_back_to_full_image():
    projected = service.project_work_post(_work_row())

    assert projected["imageUrl"] == "https://x/full.jpg"
    assert projected == {
        "id": 7,
        "title": "Tesla Model 3",
        "description": "Stage 1",
        "fullDescription": "",
        "imageUrl": "https://x/full.jpg",
        "videoUrl": "https://youtu.be/x",
        "performedWorks": ["Diagnostics", "Calibration"],
        "galleryImages": ["https://x/full.jpg"],
    }


def test_work_post_gallery_prefers_stored_images():
    projected = service.project_work_post(_work_row(gallery_images='["https://x/1.jpg", "https://x/2.jpg"]'))

    assert projected["galleryImages"] == ["https://x/1.jpg", "https://x/2.jpg"]


def test_work_post_stored_gallery_is_deduplicated():
    projected = service.project_work_post(_work_row(gallery_images='["x.jpg", "x.jpg", " x.jpg "]'))

    assert projected["galleryImages"] == ["x.jpg"]


def test_work_post_gallery_fallback_is_deduplicated():
    projected = service.project_work_post(
        _work_row(card_image_url="https://x/a.jpg", full_image_url="https://x/a.jpg", video_image_url="https://x/v.jpg")
    )

    assert projected["imageUrl"] == "https://x/a.jpg"
    assert projected["galleryImages"] == ["https://x/a.jpg", "https://x/v.jpg"]


def _probe(tables, columns=()):
    def respond(method, sql, args):
        if "information_schema.columns" in sql:
            return tuple(args) in set(columns)
        if "information_schema.tables" in sql:
            return args[0] in tables
        return [_work_row()]

    return respond


@pytest.mark.asyncio
async def test_work_posts_read_legacy_table_without_gallery_column():
    db = FakeDatabase(_probe({"blog_posts"}))

    posts = await service.work_posts(db)

    assert [post["id"] for post in posts] == [7]
    query = db.sql_log()[-1]
    assert "FROM public.blog_posts" in query
    assert "NULL::jsonb AS gallery_images" in query


@pytest.mark.asyncio
async def test_work_posts_prefer_current_table():
    db = FakeDatabase(_probe({"work_post", "blog_posts"}, columns=[("work_post", "gallery_images")]))

    await service.work_posts(db)

    query = db.sql_log()[-1]
    assert "FROM public.work_post" in query
    assert "NULL::jsonb AS gallery_images" not in query


@pytest.mark.asyncio
async def test_work_posts_without_any_table():
    with pytest.raises(NoCompatibleTable):
        await service.work_posts(FakeDatabase(_probe(set())))


@pytest.mark.asyncio
async def test_banners_fall_back_to_unqualified_table():
    def respond(method, sql, args):
        if "public.banners" in sql:
            return asyncpg.exceptions.UndefinedTableError('relation "public.banners" does not exist')
        return [{"id": 1, "section": "home", "title": "Main", "image_url": None, "priority": 1}]

    db = FakeDatabase(respond)

    assert await service.banners(db) == [
        {"id": 1, "section": "home", "title": "Main", "image_url": "", "priority": 1}
    ]
    assert db.sql_log() == list(repository.BANNER_QUERIES)


@pytest.mark.asyncio
async def test_contacts_fall_back_to_contact_page():
    def respond(method, sql, args):
        if "public.contact\n" in sql:
            return asyncpg.exceptions.UndefinedTableError("missing")
        return [
            {
                "id": 1,
                "phone_number": "+994501234567",
                "address": "Baku",
                "description": None,
                "email": None,
                "work_schedule": None,
            }
        ]

    contacts = await service.contacts(FakeDatabase(respond))

    assert contacts[0]["phone_number"] == "+994501234567"
    assert contacts[0]["email"] is None


def test_tuning_cascade_keeps_legacy_table_last():
    assert len(repository.TUNING_QUERIES) == 8
    assert all("public.tuning " in sql for sql in repository.TUNING_QUERIES[:6])
    assert all("public.tunning " in sql for sql in repository.TUNING_QUERIES[6:])


@pytest.mark.asyncio
async def test_tuning_projects_image_list():
    row = {
        "id": 3,
        "brand": "BMW",
        "model": "M5",
        "title": None,
        "card_image_url": "https://x/card.jpg",
        "full_image_url": '["https://x/1.jpg"]',
        "price": None,
        "description": "Stage 2",
        "card_description": None,
        "full_description": None,
        "video_image_url": None,
        "video_link": None,
        "created_at": None,
        "updated_at": None,
    }
    db = FakeDatabase(lambda *_: [row])

    items = await service.tuning(db)

    assert items[0]["full_image_url"] == ["https://x/1.jpg"]
    assert len(db.calls) == 1


@pytest.mark.asyncio
async def test_about_without_tables():
    db = FakeDatabase(lambda method, sql, args: False)

    assert await service.about(db) == {"page": None, "metrics": [], "sections": []}


@pytest.mark.asyncio
async def test_about_uses_page_id_for_children():
    def respond(method, sql, args):
        if "information_schema" in sql:
            return True
        if "about_page" in sql:
            return {
                "id": 2,
                "banner_title": "About",
                "banner_image_url": None,
                "history_description": "Since 2012",
                "mission_description": None,
                "video_url": None,
                "mission_image_url": None,
            }
        if "about_metrics" in sql:
            return [{"id": 1, "metric_key": "cars", "metric_value": "500+", "metric_label": "Cars", "position": 1}]
        return []

    db = FakeDatabase(respond)

    about = await service.about(db)

    assert about["page"]["title"] == "About"
    assert about["metrics"] == [{"id": 1, "key": "cars", "value": "500+", "label": "Cars", "position": 1}]
    assert about["sections"] == []
    child_args = [args for (method, sql, args) in db.calls if method == "fetch_all"]
    assert child_args == [(2,), (2,)]
