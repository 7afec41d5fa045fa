from __future__ import annotations

from typing import Any, ClassVar, Protocol


class EventPublisher(Protocol):
    async def publish(self, channel: str, event_type: str, payload: dict[str, Any]) -> None: ...


class DomainEvent(Protocol):
    EVENT_TYPE: ClassVar[str]

    def payload(self) -> dict[str, Any]: ...
