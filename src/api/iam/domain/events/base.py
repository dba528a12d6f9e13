"""Common shape of IAM domain events."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar


@dataclass(frozen=True)
class IAMEvent:
    """Base for all IAM domain events.

    Concrete events are frozen dataclasses carrying the id of the aggregate
    that produced them, a payload and ``occurred_at`` (UTC).
    """

    AGGREGATE_ID_FIELD: ClassVar[str] = ""

    @property
    def event_type(self) -> str:
        """Name used by event-bus adapters to route the event."""
        return type(self).__name__

    @property
    def aggregate_id(self) -> str:
        return getattr(self, self.AGGREGATE_ID_FIELD)
