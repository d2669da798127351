"""
Schemas for stream failure list, detail, options and create endpoints.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

from app.domain.stream_failure import StreamFailureEntity
from app.services.status_presentation import StatusPresentation


class StreamFailureResponse(BaseModel):
    id: str
    org_id: str
    failure_status: str
    created_date: str
    end_date: str | None = None
    failure_payload: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_entity(cls, entity: StreamFailureEntity) -> StreamFailureResponse:
        return cls(
            id=entity.id,
            org_id=entity.org_id,
            failure_status=entity.failure_status,
            created_date=entity.created_date,
            end_date=entity.end_date,
            failure_payload=entity.failure_payload,
        )


class StreamFailurePageResponse(BaseModel):
    items: list[StreamFailureResponse] = Field(default_factory=list)
    page: int
    page_size: int
    has_more: bool


class StatusPresentationResponse(BaseModel):
    label: str
    color: str
    badge_class: str

    @classmethod
    def from_presentation(cls, presentation: StatusPresentation) -> StatusPresentationResponse:
        return cls(
            label=presentation.label,
            color=presentation.color,
            badge_class=presentation.badge_class,
        )


class StatusOptionResponse(BaseModel):
    value: str
    presentation: StatusPresentationResponse


class StreamFailureOptionsResponse(BaseModel):
    org_ids: list[str] = Field(default_factory=list)
    statuses: list[StatusOptionResponse] = Field(default_factory=list)
    sortable_fields: list[str] = Field(default_factory=list)


class StreamFailureDetailResponse(BaseModel):
    failure: StreamFailureResponse
    status: StatusPresentationResponse
    created_display: str
    end_display: str
    payload_json: str


class StreamFailureCreateRequest(BaseModel):
    org_id: str = Field(min_length=1, max_length=120)
    failure_status: str = Field(min_length=1, max_length=32)
    failure_payload: str | dict[str, Any] | None = Field(
        default=None,
        description="JSON object, or raw text stored as {'message': text}.",
    )

    @field_validator("org_id", "failure_status", mode="before")
    @classmethod
    def _strip_required_text(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value


class HealthResponse(BaseModel):
    status: str
    record_store_backend: str
