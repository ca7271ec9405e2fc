"""
Notification Models
"""

import uuid

from sqlalchemy import Boolean, Index, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from portal.modules.shared import BaseModel


class Notification(BaseModel):
    """A message for one identity. Only its recipient may read or delete it."""

    __tablename__ = "notificaciones"

    recipient_id: Mapped[uuid.UUID] = mapped_column(
        "receptor_id", UUID(as_uuid=True), nullable=False
    )
    title: Mapped[str] = mapped_column("titulo", String(200), nullable=False)
    body: Mapped[str] = mapped_column("mensaje", Text, nullable=False)
    read: Mapped[bool] = mapped_column("leida", Boolean, nullable=False, default=False)

    __table_args__ = (Index("ix_notificaciones_receptor_created_at", "receptor_id", "created_at"),)
