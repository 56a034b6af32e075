"""Host protocol — Inbound event payloads.

Data shapes only; no business logic lives here.
"""

from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field


class MessageDeleteEvent(BaseModel):
    """Received when a message is deleted."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str = Field(description="Identifier of the deleted message.")
    channel_id: str = Field(description="Channel the message was deleted from.")

    @classmethod
    def from_wire(cls, payload: Mapping[str, Any]) -> "MessageDeleteEvent":
        """Build the event from a flat key-value payload."""
        return cls.model_validate(dict(payload))

    def to_wire(self) -> dict[str, str]:
        return {"id": self.id, "channel_id": self.channel_id}
