"""
Document rendering: fixed-size A4 pages drawn with Pillow and saved as PDF.

``PillowPdfRenderer`` rasterizes a ``DocumentLayout`` page by page (a new
page starts whenever the next block does not fit) and embeds photos inline.
Video artifacts are drawn as a placeholder notice. Rendering is CPU-bound
and runs via ``asyncio.to_thread()``.
"""

import asyncio
import io
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from PIL import Image, ImageDraw, ImageFont, ImageOps

from fieldcapture.core.config import get_settings
from fieldcapture.core.exceptions import EncodingError
from fieldcapture.services.report.layout import (
    VIDEO_HINT,
    VIDEO_NOTICE,
    DocumentLayout,
    LabeledText,
    MediaBlock,
    Paragraph,
)

logger = logging.getLogger(__name__)

A4_MM = (210, 297)
MARGIN_MM = 15
MEDIA_MAX_HEIGHT_MM = 100
PLACEHOLDER_HEIGHT_MM = 40

BRAND_BLUE = (30, 58, 138)
TEXT = (31, 41, 55)
MUTED = (107, 114, 128)
RULE = (229, 231, 235)
PLACEHOLDER_FILL = (243, 244, 246)
PLACEHOLDER_BORDER = (209, 213, 219)


class BaseDocumentRenderer(ABC):
    """Interface for document renderers."""

    media_type = "application/pdf"

    @abstractmethod
    async def render(self, layout: DocumentLayout) -> bytes:
        """Render ``layout`` into document bytes.

        Raises:
            EncodingError: If rendering fails.
        """


class RenderSurface:
    """The single off-screen surface layouts are mounted on while rendering.

    Renders are serialized; the surface is non-interactive and holds no
    layout before and after each render.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self.layout: DocumentLayout | None = None
        self.interactive = False

    @asynccontextmanager
    async def mounted(self, layout: DocumentLayout) -> AsyncIterator[DocumentLayout]:
        async with self._lock:
            self.interactive = False
            self.layout = layout
            try:
                yield layout
            finally:
                self.layout = None
                self.interactive = False


def wrap_text(draw: ImageDraw.ImageDraw, text: str, font, max_width: float) -> list[str]:
    """Greedy word wrap; words wider than ``max_width`` are split."""
    lines: list[str] = []
    for paragraph in text.splitlines() or [""]:
        current = ""
        for word in paragraph.split(" "):
            candidate = f"{current} {word}" if current else word
            if draw.textlength(candidate, font=font) <= max_width:
                current = candidate
                continue
            if current:
                lines.append(current)
            while len(word) > 1 and draw.textlength(word, font=font) > max_width:
                cut = len(word) - 1
                while cut > 1 and draw.textlength(word[:cut], font=font) > max_width:
                    cut -= 1
                lines.append(word[:cut])
                word = word[cut:]
            current = word
        lines.append(current)
    return lines


class _PageWriter:
    """Cursor over a growing list of A4 page images."""

    def __init__(self, dpi: int) -> None:
        self.dpi = dpi
        self.width, self.height = (self.mm(v) for v in A4_MM)
        self.margin = self.mm(MARGIN_MM)
        self.pages: list[Image.Image] = []
        self.fonts = {
            "title": self._font(20),
            "subtitle": self._font(9),
            "heading": self._font(13),
            "label": self._font(8),
            "body": self._font(10),
            "small": self._font(7),
        }
        self.new_page()

    def mm(self, value: float) -> int:
        return round(value * self.dpi / 25.4)

    def _font(self, points: float):
        return ImageFont.load_default(size=round(points * self.dpi / 72))

    @staticmethod
    def line_height(font) -> int:
        left, top, right, bottom = font.getbbox("ÁÇgy")
        return round((bottom - top) * 1.4) + 1

    @property
    def content_width(self) -> int:
        return self.width - 2 * self.margin

    def new_page(self) -> None:
        page = Image.new("RGB", (self.width, self.height), "white")
        self.pages.append(page)
        self.draw = ImageDraw.Draw(page)
        self.y = self.margin

    def ensure(self, needed: int) -> None:
        """Start a new page unless ``needed`` pixels still fit on this one."""
        if self.y + needed > self.height - self.margin and self.y > self.margin:
            self.new_page()

    def gap(self, mm: float) -> None:
        self.y += self.mm(mm)

    def text(self, text: str, font_name: str, fill=TEXT, x: int | None = None, width: int | None = None) -> None:
        font = self.fonts[font_name]
        x = self.margin if x is None else x
        width = self.content_width if width is None else width
        step = self.line_height(font)
        for line in wrap_text(self.draw, text, font, width):
            self.ensure(step)
            self.draw.text((x, self.y), line, font=font, fill=fill)
            self.y += step

    def rule(self, color=RULE, thickness_mm: float = 0.3) -> None:
        thickness = max(1, self.mm(thickness_mm))
        self.draw.rectangle(
            (self.margin, self.y, self.width - self.margin, self.y + thickness), fill=color
        )
        self.y += thickness

    def image(self, img: Image.Image) -> None:
        max_height = self.mm(MEDIA_MAX_HEIGHT_MM)
        scale = min(self.content_width / img.width, max_height / img.height)
        size = (max(1, round(img.width * scale)), max(1, round(img.height * scale)))
        self.ensure(size[1])
        x = self.margin + (self.content_width - size[0]) // 2
        self.pages[-1].paste(img.resize(size, Image.Resampling.LANCZOS), (x, self.y))
        self.y += size[1]

    def placeholder(self, lines: list[tuple[str, str]]) -> None:
        height = self.mm(PLACEHOLDER_HEIGHT_MM)
        self.ensure(height)
        box = (self.margin, self.y, self.width - self.margin, self.y + height)
        self.draw.rectangle(box, fill=PLACEHOLDER_FILL, outline=PLACEHOLDER_BORDER, width=2)
        total = sum(self.line_height(self.fonts[f]) for _, f in lines)
        y = self.y + (height - total) // 2
        for text, font_name in lines:
            font = self.fonts[font_name]
            w = self.draw.textlength(text, font=font)
            self.draw.text((self.margin + (self.content_width - w) / 2, y), text, font=font, fill=MUTED)
            y += self.line_height(font)
        self.y += height


class PillowPdfRenderer(BaseDocumentRenderer):
    """Renders layouts to multi-page A4 PDFs using Pillow.

    Args:
        dpi: Raster resolution of each page (default from settings).
    """

    def __init__(self, dpi: int | None = None) -> None:
        self._dpi = dpi or get_settings().render_dpi

    def _render(self, layout: DocumentLayout) -> bytes:
        page = _PageWriter(self._dpi)

        page.text(layout.title.upper(), "title", fill=BRAND_BLUE)
        page.text(layout.subtitle, "subtitle", fill=MUTED)
        page.gap(2)
        page.rule(BRAND_BLUE, 0.6)
        page.gap(6)
        self._field_grid(page, layout.fields)

        for section in layout.sections:
            page.gap(6)
            page.ensure(page.line_height(page.fonts["heading"]) * 3)
            page.text(section.heading.upper(), "heading", fill=BRAND_BLUE)
            page.rule()
            page.gap(2)
            for block in section.blocks:
                if isinstance(block, Paragraph):
                    page.text(block.text, "body")
                elif isinstance(block, LabeledText):
                    page.text(block.label, "label", fill=MUTED)
                    page.text(block.text, "body")
                    page.gap(1.5)
                elif isinstance(block, MediaBlock):
                    page.gap(3)
                    page.text(block.label, "label", fill=MUTED)
                    self._media(page, block)

        buf = io.BytesIO()
        page.pages[0].save(
            buf,
            format="PDF",
            save_all=True,
            append_images=page.pages[1:],
            resolution=float(self._dpi),
        )
        return buf.getvalue()

    @staticmethod
    def _field_grid(page: _PageWriter, fields: list[LabeledText]) -> None:
        """Two-column grid of upper-case labels over their values."""
        column = page.content_width // 2
        for i in range(0, len(fields), 2):
            top = page.y
            bottom = top
            for offset, item in enumerate(fields[i : i + 2]):
                page.y = top
                x = page.margin + offset * column
                page.text(item.label.upper(), "label", fill=MUTED, x=x, width=column - page.mm(4))
                page.text(item.text, "body", x=x, width=column - page.mm(4))
                bottom = max(bottom, page.y)
            page.y = bottom + page.mm(3)

    @staticmethod
    def _media(page: _PageWriter, block: MediaBlock) -> None:
        if block.is_video:
            page.placeholder(
                [
                    (VIDEO_NOTICE, "body"),
                    (block.artifact.filename, "small"),
                    (VIDEO_HINT, "small"),
                ]
            )
            return
        with Image.open(io.BytesIO(block.artifact.data)) as img:
            page.image(ImageOps.exif_transpose(img).convert("RGB"))

    async def render(self, layout: DocumentLayout) -> bytes:
        try:
            data = await asyncio.to_thread(self._render, layout)
        except Exception as exc:
            logger.exception("Document rendering failed")
            raise EncodingError("Falha na geração do PDF visual.") from exc
        logger.debug("Rendered document: %d bytes", len(data))
        return data
