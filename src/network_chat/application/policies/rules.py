"""State and input rules shared by the connection and conversation services."""
from __future__ import annotations

from collections.abc import Iterable

from network_chat.application.exceptions import (
    InvalidRequestError,
    InvalidTransitionError,
)
from network_chat.domain.entities.connection_request import ConnectionRequest
from network_chat.domain.entities.conversation import Conversation

MIN_GROUP_PARTICIPANTS = 2


def assert_distinct_users(user_a: int, user_b: int, detail: str) -> None:
    if user_a == user_b:
        raise InvalidRequestError(detail)


def assert_pending(request: ConnectionRequest) -> None:
    if not request.is_pending:
        raise InvalidTransitionError(
            f"Connection request is already {request.status}"
        )


def assert_group(conversation: Conversation) -> None:
    if not conversation.is_group:
        raise InvalidTransitionError(
            "Participants can only be added to group conversations"
        )


def validate_group_participants(participant_ids: Iterable[int]) -> tuple[int, ...]:
    """Return the ids in order, rejecting duplicates and groups that are too small."""
    ids = tuple(participant_ids)
    if len(set(ids)) != len(ids):
        raise InvalidRequestError("Participant list contains duplicates")
    if len(ids) < MIN_GROUP_PARTICIPANTS:
        raise InvalidRequestError(
            f"A group needs at least {MIN_GROUP_PARTICIPANTS} participants"
        )
    return ids
