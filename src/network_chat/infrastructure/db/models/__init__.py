"""Import all models so Base.metadata holds every table for create_schema()."""
from network_chat.infrastructure.db.models.connection_request import ConnectionRequestModel
from network_chat.infrastructure.db.models.conversation import ConversationModel
from network_chat.infrastructure.db.models.message import MessageModel
from network_chat.infrastructure.db.models.outbox import OutboxMessageModel
from network_chat.infrastructure.db.models.read_state import ReadStateModel

__all__ = [
    "ConnectionRequestModel",
    "ConversationModel",
    "MessageModel",
    "OutboxMessageModel",
    "ReadStateModel",
]
