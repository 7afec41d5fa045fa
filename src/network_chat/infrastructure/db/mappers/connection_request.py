from __future__ import annotations

from network_chat.domain.entities.connection_request import ConnectionRequest
from network_chat.domain.value_objects.enums import RequestStatus
from network_chat.domain.value_objects.pair import pair_key
from network_chat.infrastructure.db.models.connection_request import ConnectionRequestModel


def pending_key_for(entity: ConnectionRequest) -> str | None:
    if entity.is_pending:
        return pair_key(entity.from_user_id, entity.to_user_id)
    return None


def model_to_entity(model: ConnectionRequestModel) -> ConnectionRequest:
    return ConnectionRequest(
        id=model.id,
        from_user_id=model.from_user_id,
        to_user_id=model.to_user_id,
        message=model.message,
        status=RequestStatus(model.status),
        created_at=model.created_at,
        updated_at=model.updated_at,
        meta=dict(model.meta or {}),
        version=model.version,
    )


def entity_to_model(entity: ConnectionRequest) -> ConnectionRequestModel:
    return ConnectionRequestModel(
        id=entity.id,
        from_user_id=entity.from_user_id,
        to_user_id=entity.to_user_id,
        message=entity.message,
        status=entity.status.value,
        meta=dict(entity.meta),
        pending_key=pending_key_for(entity),
        version=entity.version,
        created_at=entity.created_at,
        updated_at=entity.updated_at,
    )
