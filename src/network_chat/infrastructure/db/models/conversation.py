from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import BigInteger, Boolean, Index, Integer, String, Text, UniqueConstraint, text
from sqlalchemy.dialects.postgresql import ARRAY, TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from network_chat.infrastructure.db.base import Base


class ConversationModel(Base):
    __tablename__ = "conversations"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )
    title: Mapped[str | None] = mapped_column(String(200), nullable=True)
    participants: Mapped[list[int]] = mapped_column(ARRAY(BigInteger), nullable=False)
    is_group: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # "<low>:<high>" for 1:1 conversations, NULL for groups
    direct_key: Mapped[str | None] = mapped_column(String(64), nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default=text("1"))
    # Preview of the latest message; all four are NULL until the first message
    last_message_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    last_message_sender_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    last_message_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_message_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=text("now()"),
        onupdate=text("now()"),
    )

    # relationships
    messages = relationship("MessageModel", back_populates="conversation", lazy="noload")

    __table_args__ = (
        UniqueConstraint("direct_key", name="uq_conversations_direct_pair"),
        Index("ix_conversations_participants", "participants", postgresql_using="gin"),
        Index("ix_conversations_updated", updated_at.desc(), "id"),
    )
