"""Normalized topic updates.

All ingestion paths (NT4 live stream, DataLog replay) convert their inputs
into these events. Only the state/store layer is allowed to merge them.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from pynt4.state.series import ValueKind


class IngestionSource(StrEnum):
    NT4 = "nt4"
    DATALOG = "datalog"


class TopicUpdate(BaseModel):
    """A single sample and/or type label to apply to the topic store."""

    model_config = ConfigDict(frozen=True)

    topic: str = Field(..., description="Full topic path, e.g. /SmartDashboard/pose/x")
    timestamp: int = Field(default=0, ge=0, description="Sample time in microseconds")
    kind: ValueKind | None = Field(default=None, description="Value kind; None for label-only updates")
    value: Any = None
    type_label: str | None = Field(default=None, description="Display type label to set for the topic")

    @field_validator("topic")
    @classmethod
    def _normalize_topic(cls, value: str) -> str:
        if not value:
            raise ValueError("topic must be non-empty")
        return value

    @model_validator(mode="after")
    def _require_payload(self) -> TopicUpdate:
        if self.kind is None and self.type_label is None:
            raise ValueError("update must carry a value kind or a type label")
        return self
