"""
Student Models

The student table is populated by administrative bulk import. The portal
mutates it through account activation, the profile wizard and the admin
reset/unlink actions; rows are never deleted.

Column names follow the legacy database; attributes are English.
"""

import enum
import uuid
from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, Enum, Index, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from portal.core.database import Base

# Value older rows carry in a document URL column while generation is running
LEGACY_PENDING_SENTINEL = "PENDIENTE"


class DocumentStatus(str, enum.Enum):
    """Lifecycle of a generated student document."""

    NOT_GENERATED = "not_generated"
    GENERATING = "generating"
    READY = "ready"
    FAILED = "failed"


class DocumentKind(str, enum.Enum):
    """Documents generated for every student."""

    RECORD = "expediente"
    CARD = "carnet"

    @property
    def url_field(self) -> str:
        return "record_url" if self is DocumentKind.RECORD else "card_url"

    @property
    def status_field(self) -> str:
        return "record_status" if self is DocumentKind.RECORD else "card_status"


class YesNo(str, enum.Enum):
    """Yes/no answers stored as text in the legacy schema."""

    YES = "SÍ"
    NO = "NO"


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


document_status_type = Enum(DocumentStatus, name="document_status", values_callable=_enum_values)


class Student(Base):
    """
    Scholarship recipient.

    Invariant: ``onboarding_completed`` implies ``activation_token is None``
    and ``linked_credential_id is not None``.
    """

    __tablename__ = "estudiantes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Imported identity
    scholar_internal_id: Mapped[str | None] = mapped_column(
        "id_becado_interno", String(50), unique=True, nullable=True
    )
    full_name: Mapped[str | None] = mapped_column(
        "nombre_completo_becado", String(200), nullable=True
    )
    personal_email: Mapped[str | None] = mapped_column("correo_personal", String(255), nullable=True)
    university: Mapped[str | None] = mapped_column("universidad", String(200), nullable=True)
    career: Mapped[str | None] = mapped_column("carrera", String(200), nullable=True)

    # Account activation
    activation_token: Mapped[str | None] = mapped_column(
        "onboarding_token", String(64), unique=True, nullable=True
    )
    onboarding_completed: Mapped[bool] = mapped_column(
        "ha_completado_onboarding", Boolean, nullable=False, default=False
    )
    linked_credential_id: Mapped[uuid.UUID | None] = mapped_column(
        "auth_user_id", UUID(as_uuid=True), unique=True, nullable=True
    )

    # Profile wizard
    birth_date: Mapped[date | None] = mapped_column("fecha_de_nacimiento", Date, nullable=True)
    call_phone: Mapped[str | None] = mapped_column("telefono_llamada", String(20), nullable=True)
    whatsapp_phone: Mapped[str | None] = mapped_column(
        "telefono_whatsapp", String(20), nullable=True
    )
    university_scholar_id: Mapped[str | None] = mapped_column(
        "id_becado_universidad", String(100), nullable=True
    )
    institutional_email: Mapped[str | None] = mapped_column(
        "correo_estudiantil", String(255), nullable=True
    )
    department: Mapped[str | None] = mapped_column("departamento", String(100), nullable=True)
    municipality: Mapped[str | None] = mapped_column("municipio", String(100), nullable=True)
    district: Mapped[str | None] = mapped_column("distrito", String(100), nullable=True)
    emergency_contact_name: Mapped[str | None] = mapped_column(
        "nombre_emergencia", String(200), nullable=True
    )
    emergency_phone: Mapped[str | None] = mapped_column(
        "telefono_emergencia", String(20), nullable=True
    )
    emergency_relationship: Mapped[str | None] = mapped_column(
        "parentesco_emergencia", String(100), nullable=True
    )
    has_disability: Mapped[bool | None] = mapped_column(
        "tiene_una_discapacidad", Boolean, nullable=True
    )
    disability_detail: Mapped[str | None] = mapped_column(
        "detalle_discapacidad", Text, nullable=True
    )
    council_member: Mapped[str | None] = mapped_column("miembro_de_consejo", String(2), nullable=True)
    elite_scholar: Mapped[str | None] = mapped_column("becado_elite", String(2), nullable=True)

    # Generated documents
    card_url: Mapped[str | None] = mapped_column("url_carnet_digital", Text, nullable=True)
    card_status: Mapped[DocumentStatus] = mapped_column(
        "estado_carnet",
        document_status_type,
        nullable=False,
        default=DocumentStatus.NOT_GENERATED,
    )
    record_url: Mapped[str | None] = mapped_column("url_expediente_digital", Text, nullable=True)
    record_status: Mapped[DocumentStatus] = mapped_column(
        "estado_expediente",
        document_status_type,
        nullable=False,
        default=DocumentStatus.NOT_GENERATED,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (Index("ix_estudiantes_nombre_completo_becado", "nombre_completo_becado"),)

    def __repr__(self) -> str:
        return f"<Student(id={self.id}, scholar_internal_id={self.scholar_internal_id})>"

    @property
    def profile_completed(self) -> bool:
        """True when every required wizard field is filled in."""
        return all(getattr(self, field) is not None for field in REQUIRED_PROFILE_FIELDS)


# Fields the student fills in through the profile wizard that must be set
# for the profile to count as complete.
REQUIRED_PROFILE_FIELDS: tuple[str, ...] = (
    "birth_date",
    "call_phone",
    "university_scholar_id",
    "institutional_email",
    "department",
    "municipality",
    "district",
    "emergency_contact_name",
    "emergency_phone",
    "emergency_relationship",
    "has_disability",
    "council_member",
    "elite_scholar",
)

# Fields nulled by an admin profile reset.
RESET_FIELDS: tuple[str, ...] = (
    "birth_date",
    "call_phone",
    "whatsapp_phone",
    "university_scholar_id",
    "institutional_email",
    "department",
    "municipality",
    "district",
    "emergency_contact_name",
    "emergency_phone",
    "emergency_relationship",
    "has_disability",
    "disability_detail",
    "council_member",
    "elite_scholar",
    "card_url",
    "record_url",
)


def usable_document_link(url: str | None, status: DocumentStatus) -> str | None:
    """
    Link to show for a generated document, or None while it is not usable.

    A link is usable only once generation finished. Rows written before
    document statuses existed may still hold the legacy pending marker in
    the URL column.
    """
    if status != DocumentStatus.READY or not url or url == LEGACY_PENDING_SENTINEL:
        return None
    return url
