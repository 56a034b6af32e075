"""Host protocol — wire payload models."""

from modhost.protocol.models import MessageDeleteEvent

__all__ = ["MessageDeleteEvent"]
