"""
Declarative registry of tables exposed through the generic admin CRUD routes.

A descriptor says which columns clients may write, which must be present on
create, which hold JSON, how lists are ordered and whether `updated_at` is
refreshed on update. The registry is built at import time and never mutated.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from core.errors import ConfigurationError, NotRegistered

DEFAULT_ORDER_BY = "t.id ASC"


def columns(*names: str) -> frozenset[str]:
    return frozenset(names)


@dataclass(frozen=True)
class TableAccessDescriptor:
    path: str
    table: str
    order_by: str = DEFAULT_ORDER_BY
    mutable_columns: frozenset[str] = field(default_factory=frozenset)
    required_on_create: frozenset[str] = field(default_factory=frozenset)
    json_columns: frozenset[str] = field(default_factory=frozenset)
    touch_updated_at: bool = False

    def __post_init__(self) -> None:
        if not self.required_on_create <= self.mutable_columns:
            missing = ", ".join(sorted(self.required_on_create - self.mutable_columns))
            raise ConfigurationError(f"{self.path}: required columns are not mutable: {missing}")
        if not self.json_columns <= self.mutable_columns:
            missing = ", ".join(sorted(self.json_columns - self.mutable_columns))
            raise ConfigurationError(f"{self.path}: JSON columns are not mutable: {missing}")


DESCRIPTORS: tuple[TableAccessDescriptor, ...] = (
    TableAccessDescriptor(
        path="/admin/banners",
        table="public.banners",
        order_by="t.priority ASC, t.id ASC",
        mutable_columns=columns("section", "title", "image_url", "priority"),
        required_on_create=columns("section", "title", "image_url"),
    ),
    TableAccessDescriptor(
        path="/admin/contact",
        table="public.contact",
        mutable_columns=columns("phone_number", "address", "description", "email", "work_schedule"),
    ),
    # Singleton page tables: clients pick the id themselves.
    TableAccessDescriptor(
        path="/admin/contact_page",
        table="public.contact_page",
        mutable_columns=columns("id", "phone_number", "address", "description", "image_url"),
    ),
    TableAccessDescriptor(
        path="/admin/about_page",
        table="public.about_page",
        mutable_columns=columns(
            "id",
            "banner_image_url",
            "banner_title",
            "history_description",
            "video_url",
            "mission_description",
            "mission_image_url",
        ),
    ),
    TableAccessDescriptor(
        path="/admin/about_metrics",
        table="public.about_metrics",
        order_by="t.position ASC, t.id ASC",
        mutable_columns=columns("about_id", "metric_key", "metric_value", "metric_label", "position"),
        required_on_create=columns("metric_key", "metric_value", "metric_label"),
    ),
    TableAccessDescriptor(
        path="/admin/about_sections",
        table="public.about_sections",
        order_by="t.position ASC, t.id ASC",
        mutable_columns=columns("about_id", "section_key", "title", "description", "position"),
        required_on_create=columns("section_key", "title", "description"),
    ),
    TableAccessDescriptor(
        path="/admin/partners",
        table="public.partners",
        order_by="t.position ASC, t.id ASC",
        mutable_columns=columns("name", "logo_url", "position"),
        required_on_create=columns("logo_url"),
    ),
    TableAccessDescriptor(
        path="/admin/tuning",
        table="public.tuning",
        order_by="t.created_at DESC, t.id DESC",
        mutable_columns=columns(
            "brand",
            "model",
            "card_image_url",
            "full_image_url",
            "price",
            "description",
            "card_description",
            "full_description",
            "video_image_url",
            "video_link",
        ),
        json_columns=columns("full_image_url"),
        touch_updated_at=True,
    ),
    TableAccessDescriptor(
        path="/admin/service_offerings",
        table="public.service_offerings",
        order_by="t.position ASC, t.id ASC",
        mutable_columns=columns(
            "service_type", "title", "detailed_description", "gallery_images", "price_text", "position"
        ),
        required_on_create=columns("service_type", "title"),
        json_columns=columns("gallery_images"),
        touch_updated_at=True,
    ),
    TableAccessDescriptor(
        path="/admin/privacy_sections",
        table="public.privacy_sections",
        order_by="t.position ASC, t.id ASC",
        mutable_columns=columns("title", "description", "position"),
        required_on_create=columns("title", "description"),
    ),
    TableAccessDescriptor(
        path="/admin/portfolio_items",
        table="public.portfolio_items",
        order_by="t.created_at DESC, t.id DESC",
        mutable_columns=columns("brand", "title", "image_url", "description", "youtube_link"),
        required_on_create=columns("title", "image_url"),
    ),
    TableAccessDescriptor(
        path="/admin/work_post",
        table="public.work_post",
        order_by="t.created_at DESC, t.id DESC",
        mutable_columns=columns(
            "title_model",
            "card_image_url",
            "full_image_url",
            "card_description",
            "work_list",
            "gallery_images",
            "full_description",
            "video_image_url",
            "video_link",
        ),
        required_on_create=columns("title_model"),
        json_columns=columns("work_list", "gallery_images"),
        touch_updated_at=True,
    ),
    TableAccessDescriptor(
        path="/admin/blog_posts",
        table="public.blog_posts",
        order_by="t.created_at DESC, t.id DESC",
        mutable_columns=columns(
            "title_model",
            "card_image_url",
            "full_image_url",
            "card_description",
            "work_list",
            "gallery_images",
            "full_description",
            "video_image_url",
            "video_link",
        ),
        required_on_create=columns("title_model"),
        json_columns=columns("work_list", "gallery_images"),
        touch_updated_at=True,
    ),
    TableAccessDescriptor(
        path="/admin/consultations",
        table="public.consultations",
        order_by="t.created_at DESC, t.id DESC",
        mutable_columns=columns(
            "first_name",
            "last_name",
            "phone",
            "service_type",
            "car_model",
            "preferred_call_time",
            "comments",
            "status",
        ),
        required_on_create=columns("first_name", "last_name", "phone", "service_type"),
    ),
)

REGISTRY: Mapping[str, TableAccessDescriptor] = MappingProxyType({d.path: d for d in DESCRIPTORS})


def lookup(path: str) -> TableAccessDescriptor:
    descriptor = REGISTRY.get(path.rstrip("/"))
    if descriptor is None:
        raise NotRegistered()
    return descriptor


def is_column_mutable(descriptor: TableAccessDescriptor, column: str) -> bool:
    return column in descriptor.mutable_columns


def is_empty_value(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def validate_update_payload(descriptor: TableAccessDescriptor, payload: Mapping[str, Any]) -> dict[str, str]:
    return {
        key: "field is not editable"
        for key in payload
        if not is_column_mutable(descriptor, key)
    }


def validate_create_payload(descriptor: TableAccessDescriptor, payload: Mapping[str, Any]) -> dict[str, str]:
    errors = validate_update_payload(descriptor, payload)
    for key in descriptor.required_on_create:
        if key not in payload or is_empty_value(payload[key]):
            errors[key] = "field is required"
    return errors
