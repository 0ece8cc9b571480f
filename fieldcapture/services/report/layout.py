"""Fixed document layout built from an inspection record.

The layout is a plain tree of blocks; it holds no rendering logic so it can
be checked independently of the PDF renderer.
"""

from dataclasses import dataclass, field
from datetime import datetime

from fieldcapture.core.models import CaptureArtifact, InspectionRecord, RecordType

VIDEO_NOTICE = "Arquivo de Vídeo Anexado"
VIDEO_HINT = "(Vídeos não são reproduzidos em impressões PDF. Consulte o link no Drive.)"

_TITLES = {
    RecordType.inspection: "Relatório de Inspeção",
    RecordType.oac: "Relatório OAC",
}


@dataclass
class LabeledText:
    label: str
    text: str


@dataclass
class Paragraph:
    text: str


@dataclass
class MediaBlock:
    """An embedded photo, or a placeholder notice for a video."""

    label: str
    artifact: CaptureArtifact

    @property
    def is_video(self) -> bool:
        return self.artifact.is_video


Block = LabeledText | Paragraph | MediaBlock


@dataclass
class Section:
    heading: str
    blocks: list[Block] = field(default_factory=list)


@dataclass
class DocumentLayout:
    title: str
    subtitle: str
    fields: list[LabeledText]
    sections: list[Section]

    @property
    def media(self) -> list[MediaBlock]:
        return [b for s in self.sections for b in s.blocks if isinstance(b, MediaBlock)]


def format_datetime(value: datetime) -> str:
    """pt-BR style ``dd/mm/yyyy, HH:MM:SS``."""
    return value.strftime("%d/%m/%Y, %H:%M:%S")


def format_resolved(value: bool | None, unset: str = "-") -> str:
    if value is None:
        return unset
    return "SIM" if value else "NÃO"


def build_layout(record: InspectionRecord, generated_at: datetime) -> DocumentLayout:
    """Lay the record out in report order.

    Responsible person and deadline only appear when the issue was not
    resolved on the spot; the resolution evidence only when it was.
    """
    fields = [
        LabeledText("Colaborador", record.collaborator_name or "-"),
        LabeledText("Área", record.collaborator_area or "-"),
        LabeledText("Unidade", record.unit or "-"),
        LabeledText("Data", format_datetime(record.date_time) if record.date_time else "-"),
        LabeledText("Local", record.location or "-"),
    ]

    description = Section(
        "Descrição",
        [Paragraph(record.description or "Nenhuma descrição fornecida.")],
    )
    if record.photo_inspection is not None:
        description.blocks.append(MediaBlock("Registro de Evidência", record.photo_inspection))

    treatment = Section(
        "Tratativa",
        [
            LabeledText("Ação Imediata:", record.immediate_action_description or "-"),
            LabeledText("Resolvido?", format_resolved(record.is_resolved_immediately)),
        ],
    )
    if record.is_resolved_immediately:
        if record.photo_resolution is not None:
            treatment.blocks.append(
                MediaBlock("Evidência da Regularização", record.photo_resolution)
            )
    else:
        deadline = record.resolution_deadline
        treatment.blocks.append(LabeledText("Responsável:", record.responsible_person or "-"))
        treatment.blocks.append(
            LabeledText("Prazo:", deadline.strftime("%d/%m/%Y") if deadline else "-")
        )

    sections = [description, treatment]
    if record.suggestions:
        sections.append(Section("Sugestões", [Paragraph(record.suggestions)]))

    return DocumentLayout(
        title=_TITLES[record.record_type],
        subtitle=generated_at.strftime("Gerado em %d/%m/%Y às %H:%M:%S"),
        fields=fields,
        sections=sections,
    )
