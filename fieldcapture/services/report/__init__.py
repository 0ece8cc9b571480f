"""
Report module - document layout, rendering and submission payload assembly.
"""

from .assembler import MediaSlot, ReportAssembler, media_slots, record_data
from .layout import DocumentLayout, build_layout
from .renderer import BaseDocumentRenderer, PillowPdfRenderer, RenderSurface

__all__ = [
    "BaseDocumentRenderer",
    "DocumentLayout",
    "MediaSlot",
    "PillowPdfRenderer",
    "RenderSurface",
    "ReportAssembler",
    "build_layout",
    "media_slots",
    "record_data",
]
