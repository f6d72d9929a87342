"""
Consultation lead request schema.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class ConsultationCreateRequest(BaseModel):
    # Unknown fields are rejected; length and format rules live in service.py.
    model_config = ConfigDict(extra="forbid")

    first_name: str = ""
    last_name: str = ""
    phone: str = ""
    service_type: str = ""
    car_model: str = ""
    preferred_call_time: str = ""
    comments: str = ""
