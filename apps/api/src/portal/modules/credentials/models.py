"""
Credential Models
"""

from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from portal.modules.shared import BaseModel


class AuthIdentity(BaseModel):
    """
    A login identity in the credential store.

    Students reference it through ``Student.linked_credential_id`` and
    admins through ``Admin.credential_id``.
    """

    __tablename__ = "auth_identities"

    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)
    last_sign_in_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    def __repr__(self) -> str:
        return f"<AuthIdentity(id={self.id}, email={self.email})>"
