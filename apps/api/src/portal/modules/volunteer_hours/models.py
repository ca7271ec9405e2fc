"""
Volunteer Hours Models

Hour requests move pending -> approved or pending -> rejected and are
terminal afterwards. Each approved request produces exactly one ledger
entry, which is never modified.
"""

import enum
import uuid
from datetime import date, datetime

from sqlalchemy import Date, DateTime, Enum, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from portal.modules.shared import BaseModel

DEFAULT_SUPERVISOR = "N/A"
LEDGER_STATUS_VALIDATED = "validado"


class HourRequestStatus(str, enum.Enum):
    """Status of an hour-credit request."""

    PENDING = "pendiente"
    APPROVED = "aprobado"
    REJECTED = "rechazado"


class HourRequest(BaseModel):
    """A student's claim of volunteer hours awaiting review."""

    __tablename__ = "solicitudes_horas"

    student_id: Mapped[int] = mapped_column(
        "estudiante_id",
        Integer,
        ForeignKey("estudiantes.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    credential_id: Mapped[uuid.UUID] = mapped_column(
        "auth_user_id", UUID(as_uuid=True), nullable=False
    )

    activity_date: Mapped[date] = mapped_column("fecha_actividad", Date, nullable=False)
    activity_name: Mapped[str] = mapped_column("nombre_actividad", String(300), nullable=False)
    requested_hours: Mapped[int] = mapped_column("cantidad_horas", Integer, nullable=False)
    supervisor: Mapped[str] = mapped_column(
        "responsable_encargado", String(200), nullable=False, default=DEFAULT_SUPERVISOR
    )
    attachment_url: Mapped[str | None] = mapped_column("url_bitacora", Text, nullable=True)

    status: Mapped[HourRequestStatus] = mapped_column(
        "estado",
        Enum(
            HourRequestStatus,
            name="hour_request_status",
            values_callable=lambda e: [member.value for member in e],
        ),
        nullable=False,
        default=HourRequestStatus.PENDING,
    )

    # Review
    approved_hours: Mapped[float | None] = mapped_column("horas_aprobadas", Float, nullable=True)
    reviewer_notes: Mapped[str | None] = mapped_column("notas_revision", Text, nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column("motivo_rechazo", Text, nullable=True)
    reviewed_by: Mapped[uuid.UUID | None] = mapped_column(
        "revisado_por", UUID(as_uuid=True), nullable=True
    )
    reviewed_at: Mapped[datetime | None] = mapped_column(
        "fecha_revision", DateTime(timezone=True), nullable=True
    )

    __table_args__ = (Index("ix_solicitudes_horas_estado_created_at", "estado", "created_at"),)

    def __repr__(self) -> str:
        return f"<HourRequest(id={self.id}, student_id={self.student_id}, status={self.status})>"


class HourLedgerEntry(BaseModel):
    """
    Credited volunteer hours.

    Student name and internal id are copied at approval time so the ledger
    reads on its own.
    """

    __tablename__ = "horas_voluntariados"

    request_id: Mapped[uuid.UUID | None] = mapped_column(
        "solicitud_id",
        UUID(as_uuid=True),
        ForeignKey("solicitudes_horas.id", ondelete="RESTRICT"),
        unique=True,
        nullable=True,
    )
    scholar_internal_id: Mapped[str] = mapped_column(
        "id_becado_interno", String(50), nullable=False, index=True
    )
    scholar_full_name: Mapped[str] = mapped_column(
        "nombre_completo_becado", String(200), nullable=False
    )
    activity_date: Mapped[date] = mapped_column("fecha_actividad", Date, nullable=False)
    activity_name: Mapped[str] = mapped_column("nombre_actividad", String(300), nullable=False)
    hours: Mapped[float] = mapped_column("cantidad_horas", Float, nullable=False)
    supervisor: Mapped[str] = mapped_column(
        "responsable_encargado", String(200), nullable=False, default=DEFAULT_SUPERVISOR
    )
    status: Mapped[str] = mapped_column(
        "estado", String(20), nullable=False, default=LEDGER_STATUS_VALIDATED
    )

    def __repr__(self) -> str:
        return (
            f"<HourLedgerEntry(id={self.id}, scholar={self.scholar_internal_id}, "
            f"hours={self.hours})>"
        )
