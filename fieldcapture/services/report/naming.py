"""Filenames for the generated document and its attachments."""

from datetime import date

from fieldcapture.core.models import RecordType
from fieldcapture.core.utils import safe_filename_part

DOCUMENT_PREFIXES = {
    RecordType.inspection: "Relatorio",
    RecordType.oac: "OAC",
}


def date_stamp(day: date) -> str:
    """``dd-mm-yyyy``, the filename-safe form of a pt-BR date."""
    return day.strftime("%d-%m-%Y")


def document_filename(record_type: RecordType, collaborator_name: str, day: date) -> str:
    """e.g. ``Relatorio_Joao_Silva_19-10-2026.pdf``."""
    prefix = DOCUMENT_PREFIXES[RecordType(record_type)]
    return f"{prefix}_{safe_filename_part(collaborator_name)}_{date_stamp(day)}.pdf"


def media_filename(prefix: str, collaborator_name: str, day: date) -> str:
    """e.g. ``Registro_Inspecao_Joao_Silva_19-10-2026.jpg``."""
    return f"{prefix}_{safe_filename_part(collaborator_name)}_{date_stamp(day)}.jpg"
