"""
PDF rendering for student documents using reportlab.

Rendering is CPU-bound and synchronous; callers run it in a worker thread.
"""

from dataclasses import dataclass
from datetime import date, datetime
from io import BytesIO
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.colors import HexColor
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch, mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from portal.modules.students.models import DocumentKind, Student

BRAND_COLOR = HexColor("#0b3a6e")
ISSUER = "Dirección de Integración - Programa de Becas"
CARD_SIZE = (85.6 * mm, 54 * mm)
EMPTY_VALUE = "-"


@dataclass
class StudentDocumentData:
    """Snapshot of the student fields printed on the documents."""

    full_name: str
    scholar_internal_id: str
    birth_date: date | None = None
    call_phone: str | None = None
    whatsapp_phone: str | None = None
    personal_email: str | None = None
    university: str | None = None
    career: str | None = None
    university_scholar_id: str | None = None
    institutional_email: str | None = None
    department: str | None = None
    municipality: str | None = None
    district: str | None = None
    emergency_contact_name: str | None = None
    emergency_phone: str | None = None
    emergency_relationship: str | None = None

    @classmethod
    def from_student(cls, student: Student) -> "StudentDocumentData":
        return cls(
            full_name=student.full_name or "",
            scholar_internal_id=student.scholar_internal_id or "",
            birth_date=student.birth_date,
            call_phone=student.call_phone,
            whatsapp_phone=student.whatsapp_phone,
            personal_email=student.personal_email,
            university=student.university,
            career=student.career,
            university_scholar_id=student.university_scholar_id,
            institutional_email=student.institutional_email,
            department=student.department,
            municipality=student.municipality,
            district=student.district,
            emergency_contact_name=student.emergency_contact_name,
            emergency_phone=student.emergency_phone,
            emergency_relationship=student.emergency_relationship,
        )


def _text(value) -> str:
    if value is None or value == "":
        return EMPTY_VALUE
    if isinstance(value, date):
        return value.strftime("%d/%m/%Y")
    return escape(str(value))


class StudentDocumentRenderer:
    """Render the digital record and digital card PDFs."""

    def __init__(self):
        self.styles = getSampleStyleSheet()
        self._setup_custom_styles()

    def _setup_custom_styles(self):
        self.styles.add(
            ParagraphStyle(
                name="DocTitle",
                parent=self.styles["Title"],
                fontSize=20,
                textColor=BRAND_COLOR,
                alignment=TA_CENTER,
                fontName="Helvetica-Bold",
                spaceAfter=6,
            )
        )
        self.styles.add(
            ParagraphStyle(
                name="DocSubtitle",
                parent=self.styles["Normal"],
                fontSize=10,
                textColor=HexColor("#4a4a4a"),
                alignment=TA_CENTER,
                spaceAfter=18,
            )
        )
        self.styles.add(
            ParagraphStyle(
                name="SectionHeading",
                parent=self.styles["Heading2"],
                fontSize=12,
                textColor=BRAND_COLOR,
                spaceBefore=12,
                spaceAfter=6,
            )
        )
        self.styles.add(
            ParagraphStyle(
                name="CardName",
                parent=self.styles["Normal"],
                fontSize=9,
                leading=11,
                fontName="Helvetica-Bold",
                alignment=TA_CENTER,
            )
        )
        self.styles.add(
            ParagraphStyle(
                name="CardText",
                parent=self.styles["Normal"],
                fontSize=6.5,
                leading=8,
                alignment=TA_CENTER,
            )
        )

    def _section_table(self, rows: list[tuple[str, object]]) -> Table:
        data = [
            [
                Paragraph(f"<b>{escape(label)}</b>", self.styles["Normal"]),
                Paragraph(_text(value), self.styles["Normal"]),
            ]
            for label, value in rows
        ]
        table = Table(data, colWidths=[2.2 * inch, 4.3 * inch])
        table.setStyle(
            TableStyle(
                [
                    ("GRID", (0, 0), (-1, -1), 0.5, colors.lightgrey),
                    ("BACKGROUND", (0, 0), (0, -1), HexColor("#f3f4f6")),
                    ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                    ("TOPPADDING", (0, 0), (-1, -1), 4),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
                ]
            )
        )
        return table

    def render_record(self, data: StudentDocumentData) -> bytes:
        """Render the digital record (expediente) as an A4 PDF."""
        buffer = BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            rightMargin=54,
            leftMargin=54,
            topMargin=54,
            bottomMargin=54,
            title=f"Expediente Digital - {data.full_name}",
            author=ISSUER,
        )

        story = [
            Paragraph("Expediente Digital", self.styles["DocTitle"]),
            Paragraph(escape(ISSUER), self.styles["DocSubtitle"]),
            Paragraph("Datos personales", self.styles["SectionHeading"]),
            self._section_table(
                [
                    ("Nombre completo", data.full_name),
                    ("ID de becado", data.scholar_internal_id),
                    ("Fecha de nacimiento", data.birth_date),
                    ("Teléfono", data.call_phone),
                    ("WhatsApp", data.whatsapp_phone),
                    ("Correo personal", data.personal_email),
                ]
            ),
            Paragraph("Datos académicos", self.styles["SectionHeading"]),
            self._section_table(
                [
                    ("Universidad", data.university),
                    ("Carrera", data.career),
                    ("ID en la universidad", data.university_scholar_id),
                    ("Correo estudiantil", data.institutional_email),
                ]
            ),
            Paragraph("Residencia", self.styles["SectionHeading"]),
            self._section_table(
                [
                    ("Departamento", data.department),
                    ("Municipio", data.municipality),
                    ("Distrito", data.district),
                ]
            ),
            Paragraph("Contacto de emergencia", self.styles["SectionHeading"]),
            self._section_table(
                [
                    ("Nombre", data.emergency_contact_name),
                    ("Teléfono", data.emergency_phone),
                    ("Parentesco", data.emergency_relationship),
                ]
            ),
            Spacer(1, 24),
            Paragraph(
                f"Generado el {datetime.now().strftime('%d/%m/%Y %H:%M')}",
                self.styles["DocSubtitle"],
            ),
        ]

        doc.build(story)
        return buffer.getvalue()

    def render_card(self, data: StudentDocumentData) -> bytes:
        """Render the digital card (carnet) at ID-card size."""
        buffer = BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=CARD_SIZE,
            rightMargin=4 * mm,
            leftMargin=4 * mm,
            topMargin=4 * mm,
            bottomMargin=3 * mm,
            title=f"Carnet Digital - {data.full_name}",
            author=ISSUER,
        )

        story = [
            Paragraph("CARNET DE BECARIO", self.styles["CardName"]),
            Spacer(1, 2 * mm),
            Paragraph(_text(data.full_name), self.styles["CardName"]),
            Paragraph(f"ID: {_text(data.scholar_internal_id)}", self.styles["CardText"]),
            Paragraph(_text(data.university), self.styles["CardText"]),
            Paragraph(_text(data.career), self.styles["CardText"]),
            Spacer(1, 2 * mm),
            Paragraph(escape(ISSUER), self.styles["CardText"]),
        ]

        doc.build(story)
        return buffer.getvalue()

    def render(self, kind: DocumentKind, data: StudentDocumentData) -> bytes:
        if kind is DocumentKind.RECORD:
            return self.render_record(data)
        return self.render_card(data)
