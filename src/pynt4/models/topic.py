"""Topic introspection model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class TopicInfo(BaseModel):
    """A stored topic and its display type label."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: str

    @property
    def is_struct(self) -> bool:
        return self.type.startswith("struct:")
