"""create portal tables

Revision ID: b7c8d9e0f1a2
Revises:
Create Date: 2026-10-18 12:00:00.000000

This migration creates the full portal schema:
1. auth_identities (credential store)
2. estudiantes, with explicit document status columns
3. usuarios_administrativos
4. solicitudes_horas and horas_voluntariados (one ledger entry per request)
5. notificaciones

Student, admin and hour tables keep the legacy Spanish column names used
by the administrative bulk import.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "b7c8d9e0f1a2"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        server_default=sa.text("now()"),
        nullable=False,
    )


def upgrade() -> None:
    """Create all portal tables and enum types."""
    document_status_enum = postgresql.ENUM(
        "not_generated",
        "generating",
        "ready",
        "failed",
        name="document_status",
        create_type=False,
    )
    document_status_enum.create(op.get_bind(), checkfirst=True)

    hour_request_status_enum = postgresql.ENUM(
        "pendiente",
        "aprobado",
        "rechazado",
        name="hour_request_status",
        create_type=False,
    )
    hour_request_status_enum.create(op.get_bind(), checkfirst=True)

    # Credential store
    op.create_table(
        "auth_identities",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        _created_at(),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("last_sign_in_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_auth_identities_email", "auth_identities", ["email"], unique=True)

    # Students
    op.create_table(
        "estudiantes",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        # Imported identity
        sa.Column("id_becado_interno", sa.String(length=50), nullable=True),
        sa.Column("nombre_completo_becado", sa.String(length=200), nullable=True),
        sa.Column("correo_personal", sa.String(length=255), nullable=True),
        sa.Column("universidad", sa.String(length=200), nullable=True),
        sa.Column("carrera", sa.String(length=200), nullable=True),
        # Account activation
        sa.Column("onboarding_token", sa.String(length=64), nullable=True),
        sa.Column(
            "ha_completado_onboarding",
            sa.Boolean(),
            nullable=False,
            server_default="false",
        ),
        sa.Column("auth_user_id", postgresql.UUID(as_uuid=True), nullable=True),
        # Profile wizard
        sa.Column("fecha_de_nacimiento", sa.Date(), nullable=True),
        sa.Column("telefono_llamada", sa.String(length=20), nullable=True),
        sa.Column("telefono_whatsapp", sa.String(length=20), nullable=True),
        sa.Column("id_becado_universidad", sa.String(length=100), nullable=True),
        sa.Column("correo_estudiantil", sa.String(length=255), nullable=True),
        sa.Column("departamento", sa.String(length=100), nullable=True),
        sa.Column("municipio", sa.String(length=100), nullable=True),
        sa.Column("distrito", sa.String(length=100), nullable=True),
        sa.Column("nombre_emergencia", sa.String(length=200), nullable=True),
        sa.Column("telefono_emergencia", sa.String(length=20), nullable=True),
        sa.Column("parentesco_emergencia", sa.String(length=100), nullable=True),
        sa.Column("tiene_una_discapacidad", sa.Boolean(), nullable=True),
        sa.Column("detalle_discapacidad", sa.Text(), nullable=True),
        sa.Column("miembro_de_consejo", sa.String(length=2), nullable=True),
        sa.Column("becado_elite", sa.String(length=2), nullable=True),
        # Generated documents
        sa.Column("url_carnet_digital", sa.Text(), nullable=True),
        sa.Column(
            "estado_carnet",
            document_status_enum,
            nullable=False,
            server_default="not_generated",
        ),
        sa.Column("url_expediente_digital", sa.Text(), nullable=True),
        sa.Column(
            "estado_expediente",
            document_status_enum,
            nullable=False,
            server_default="not_generated",
        ),
        _created_at(),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("id_becado_interno", name="uq_estudiantes_id_becado_interno"),
        sa.UniqueConstraint("onboarding_token", name="uq_estudiantes_onboarding_token"),
        sa.UniqueConstraint("auth_user_id", name="uq_estudiantes_auth_user_id"),
    )
    op.create_index(
        "ix_estudiantes_nombre_completo_becado",
        "estudiantes",
        ["nombre_completo_becado"],
    )

    # Admins
    op.create_table(
        "usuarios_administrativos",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        _created_at(),
        sa.Column("auth_user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("nombre_completo", sa.String(length=200), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_usuarios_administrativos_auth_user_id",
        "usuarios_administrativos",
        ["auth_user_id"],
        unique=True,
    )

    # Hour requests
    op.create_table(
        "solicitudes_horas",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        _created_at(),
        sa.Column("estudiante_id", sa.Integer(), nullable=False),
        sa.Column("auth_user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("fecha_actividad", sa.Date(), nullable=False),
        sa.Column("nombre_actividad", sa.String(length=300), nullable=False),
        sa.Column("cantidad_horas", sa.Integer(), nullable=False),
        sa.Column(
            "responsable_encargado",
            sa.String(length=200),
            nullable=False,
            server_default="N/A",
        ),
        sa.Column("url_bitacora", sa.Text(), nullable=True),
        sa.Column(
            "estado",
            hour_request_status_enum,
            nullable=False,
            server_default="pendiente",
        ),
        sa.Column("horas_aprobadas", sa.Float(), nullable=True),
        sa.Column("notas_revision", sa.Text(), nullable=True),
        sa.Column("motivo_rechazo", sa.Text(), nullable=True),
        sa.Column("revisado_por", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("fecha_revision", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["estudiante_id"],
            ["estudiantes.id"],
            name="fk_solicitudes_horas_estudiante_id",
            ondelete="RESTRICT",
        ),
        sa.CheckConstraint("cantidad_horas >= 1", name="ck_solicitudes_horas_cantidad_positiva"),
    )
    op.create_index(
        "ix_solicitudes_horas_estudiante_id", "solicitudes_horas", ["estudiante_id"]
    )
    op.create_index(
        "ix_solicitudes_horas_estado_created_at",
        "solicitudes_horas",
        ["estado", "created_at"],
    )

    # Hour ledger
    op.create_table(
        "horas_voluntariados",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        _created_at(),
        sa.Column("solicitud_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("id_becado_interno", sa.String(length=50), nullable=False),
        sa.Column("nombre_completo_becado", sa.String(length=200), nullable=False),
        sa.Column("fecha_actividad", sa.Date(), nullable=False),
        sa.Column("nombre_actividad", sa.String(length=300), nullable=False),
        sa.Column("cantidad_horas", sa.Float(), nullable=False),
        sa.Column(
            "responsable_encargado",
            sa.String(length=200),
            nullable=False,
            server_default="N/A",
        ),
        sa.Column("estado", sa.String(length=20), nullable=False, server_default="validado"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["solicitud_id"],
            ["solicitudes_horas.id"],
            name="fk_horas_voluntariados_solicitud_id",
            ondelete="RESTRICT",
        ),
        # One ledger entry per approved request
        sa.UniqueConstraint("solicitud_id", name="uq_horas_voluntariados_solicitud_id"),
        sa.CheckConstraint("cantidad_horas > 0", name="ck_horas_voluntariados_cantidad_positiva"),
    )
    op.create_index(
        "ix_horas_voluntariados_id_becado_interno",
        "horas_voluntariados",
        ["id_becado_interno"],
    )

    # Notifications
    op.create_table(
        "notificaciones",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        _created_at(),
        sa.Column("receptor_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("titulo", sa.String(length=200), nullable=False),
        sa.Column("mensaje", sa.Text(), nullable=False),
        sa.Column("leida", sa.Boolean(), nullable=False, server_default="false"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_notificaciones_receptor_created_at",
        "notificaciones",
        ["receptor_id", "created_at"],
    )


def downgrade() -> None:
    """Drop all portal tables and enum types."""
    op.drop_index("ix_notificaciones_receptor_created_at", table_name="notificaciones")
    op.drop_table("notificaciones")

    op.drop_index("ix_horas_voluntariados_id_becado_interno", table_name="horas_voluntariados")
    op.drop_table("horas_voluntariados")

    op.drop_index("ix_solicitudes_horas_estado_created_at", table_name="solicitudes_horas")
    op.drop_index("ix_solicitudes_horas_estudiante_id", table_name="solicitudes_horas")
    op.drop_table("solicitudes_horas")

    op.drop_index(
        "ix_usuarios_administrativos_auth_user_id", table_name="usuarios_administrativos"
    )
    op.drop_table("usuarios_administrativos")

    op.drop_index("ix_estudiantes_nombre_completo_becado", table_name="estudiantes")
    op.drop_table("estudiantes")

    op.drop_index("ix_auth_identities_email", table_name="auth_identities")
    op.drop_table("auth_identities")

    op.execute("DROP TYPE IF EXISTS hour_request_status")
    op.execute("DROP TYPE IF EXISTS document_status")
