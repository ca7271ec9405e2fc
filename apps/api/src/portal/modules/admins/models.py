"""
Admin Models

An Admin row grants administrative privilege to a credential store
identity. There is no role column: the row's existence is the role.
"""

import uuid

from sqlalchemy import String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from portal.modules.shared import BaseModel


class Admin(BaseModel):
    """Administrative user linked to a credential store identity."""

    __tablename__ = "usuarios_administrativos"

    credential_id: Mapped[uuid.UUID] = mapped_column(
        "auth_user_id", UUID(as_uuid=True), unique=True, index=True, nullable=False
    )
    full_name: Mapped[str | None] = mapped_column("nombre_completo", String(200), nullable=True)

    def __repr__(self) -> str:
        return f"<Admin(id={self.id}, credential_id={self.credential_id})>"
