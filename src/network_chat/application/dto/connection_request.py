from __future__ import annotations

from dataclasses import dataclass

from network_chat.domain.value_objects.enums import RequestBox


@dataclass(frozen=True, slots=True)
class RequestFilterDTO:
    box: RequestBox = RequestBox.INCOMING
    include_resolved: bool = False
    limit: int = 100
