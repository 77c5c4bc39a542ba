"""Pydantic schemas for timer payloads and push messages."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from ..services.timecalc import to_iso

ALL_TIMERS = "all_timers"
ACTIVE_TIMERS = "active_timers"


class TimerCreate(BaseModel):
    description: str = Field(..., max_length=1000)


class TimerCreated(BaseModel):
    id: int


class TimerView(BaseModel):
    """Client-facing timer. ``progress`` is set while active, ``end``/``duration`` once stopped."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: int
    user_id: int = Field(alias="userId")
    description: str
    start: datetime
    end: Optional[datetime] = None
    is_active: bool = Field(alias="isActive")
    progress: Optional[int] = None
    duration: Optional[int] = None

    @field_serializer("start", "end")
    def _serialize_timestamp(self, value: datetime | None) -> str | None:
        return to_iso(value) if value is not None else None

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class TimerSnapshot(BaseModel):
    type: Literal["all_timers", "active_timers"]
    timers: list[TimerView] = Field(default_factory=list)

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
