from __future__ import annotations

from enum import StrEnum


class RequestStatus(StrEnum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class RequestDecision(StrEnum):
    ACCEPT = "accept"
    REJECT = "reject"

    @property
    def resulting_status(self) -> RequestStatus:
        if self is RequestDecision.ACCEPT:
            return RequestStatus.ACCEPTED
        return RequestStatus.REJECTED


class RequestBox(StrEnum):
    INCOMING = "incoming"
    OUTGOING = "outgoing"
