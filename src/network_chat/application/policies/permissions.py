from __future__ import annotations

from network_chat.application.exceptions import ForbiddenError, NotFoundError
from network_chat.domain.entities.connection_request import ConnectionRequest
from network_chat.domain.entities.conversation import Conversation


def assert_conversation_access(
    user_id: int,
    conversation: Conversation | None,
) -> Conversation:
    """Raise if conversation doesn't exist or user is not a participant."""
    if conversation is None:
        raise NotFoundError("Conversation not found")

    if not conversation.has_member(user_id):
        raise ForbiddenError("Not a participant of this conversation")

    return conversation


def assert_request_access(
    user_id: int,
    request: ConnectionRequest | None,
) -> ConnectionRequest:
    """Only the sender and the recipient may see or annotate a request."""
    if request is None:
        raise NotFoundError("Connection request not found")

    if not request.involves(user_id):
        raise ForbiddenError("Not a party to this connection request")

    return request


def assert_request_recipient(
    user_id: int,
    request: ConnectionRequest | None,
) -> ConnectionRequest:
    if request is None:
        raise NotFoundError("Connection request not found")

    if request.to_user_id != user_id:
        raise ForbiddenError("Only the recipient can respond to this request")

    return request
