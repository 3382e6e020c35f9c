"""
reportlab-backed document writer.

Pages are handed out before anything is drawn on them, so link targets can be
resolved in any order. Drawing calls are buffered per page and replayed into a
single canvas when the document is finalized; every page gets a named
destination and every link points at one, which lets reportlab resolve
forward references at save time.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import partial
from io import BytesIO
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from reportlab.lib import colors
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from .errors import WriterError
from .types import Rect


logger = logging.getLogger(__name__)

ColorLike = Union[colors.Color, str, Tuple[float, float, float], None]
Op = Callable[[canvas.Canvas], None]


def to_color(value: ColorLike, default: Optional[colors.Color] = None) -> Optional[colors.Color]:
    if value is None:
        return default
    if isinstance(value, colors.Color):
        return value
    if isinstance(value, str):
        try:
            return colors.HexColor("#" + value.lstrip("#"))
        except (ValueError, TypeError):
            return default
    r, g, b = value
    return colors.Color(r, g, b)


@dataclass(frozen=True)
class PageHandle:
    index: int
    dest: str


@dataclass(frozen=True)
class ImageHandle:
    key: int
    width: float
    height: float


@dataclass
class _PageBuffer:
    width: float
    height: float
    ops: List[Op] = field(default_factory=list)
    links: List[Tuple[Rect, str]] = field(default_factory=list)


class ReportLabWriter:
    def __init__(self) -> None:
        self._pages: List[_PageBuffer] = []
        self._images: Dict[int, ImageReader] = {}
        self._metadata: Dict[str, str] = {}
        self._finalized = False

    # -- pages -------------------------------------------------------------

    def create_page(self, width: float, height: float) -> PageHandle:
        handle = PageHandle(index=len(self._pages), dest=f"page-{len(self._pages) + 1}")
        self._pages.append(_PageBuffer(width=float(width), height=float(height)))
        return handle

    @property
    def page_count(self) -> int:
        return len(self._pages)

    def _page(self, handle: PageHandle) -> _PageBuffer:
        if self._finalized:
            raise WriterError("Document already finalized")
        try:
            return self._pages[handle.index]
        except IndexError as exc:
            raise WriterError(f"Unknown page handle: {handle}") from exc

    def link_count(self, handle: PageHandle) -> int:
        return len(self._pages[handle.index].links)

    # -- drawing -----------------------------------------------------------

    def draw_rect(
        self,
        handle: PageHandle,
        x: float,
        y: float,
        width: float,
        height: float,
        fill: ColorLike = None,
        stroke: ColorLike = None,
        line_width: float = 0.5,
    ) -> None:
        self._page(handle).ops.append(
            partial(_rect, x, y, width, height, to_color(fill), to_color(stroke), line_width)
        )

    def draw_line(
        self,
        handle: PageHandle,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        color: ColorLike = None,
        line_width: float = 0.5,
        dash: Optional[Sequence[float]] = None,
    ) -> None:
        self._page(handle).ops.append(
            partial(_line, x1, y1, x2, y2, to_color(color, colors.black), line_width, dash)
        )

    def draw_circle(
        self,
        handle: PageHandle,
        x: float,
        y: float,
        radius: float,
        fill: ColorLike = None,
        stroke: ColorLike = None,
        line_width: float = 0.5,
    ) -> None:
        self._page(handle).ops.append(
            partial(_circle, x, y, radius, to_color(fill), to_color(stroke), line_width)
        )

    def draw_text(
        self,
        handle: PageHandle,
        x: float,
        y: float,
        text: str,
        font: str = "Helvetica",
        size: float = 10,
        color: ColorLike = None,
        align: str = "left",
        rotation: float = 0.0,
    ) -> None:
        self._page(handle).ops.append(
            partial(_text, x, y, str(text), font, float(size), to_color(color, colors.black), align, rotation)
        )

    def string_width(self, text: str, font: str, size: float) -> float:
        return stringWidth(text, font, size)

    # -- images ------------------------------------------------------------

    def embed_image(self, data: bytes) -> ImageHandle:
        try:
            reader = ImageReader(BytesIO(data))
            width, height = reader.getSize()
        except Exception as exc:
            raise WriterError(f"Unreadable image: {exc}") from exc
        key = len(self._images)
        self._images[key] = reader
        return ImageHandle(key=key, width=float(width), height=float(height))

    def draw_image(
        self,
        handle: PageHandle,
        image: ImageHandle,
        x: float,
        y: float,
        width: float,
        height: float,
        opacity: float = 1.0,
    ) -> None:
        reader = self._images.get(image.key)
        if reader is None:
            raise WriterError(f"Unknown image handle: {image}")
        self._page(handle).ops.append(partial(_image, reader, x, y, width, height, opacity))

    # -- annotations -------------------------------------------------------

    def add_link(self, handle: PageHandle, rect: Rect, target: PageHandle) -> None:
        if not 0 <= target.index < len(self._pages):
            raise WriterError(f"Link target is not a page of this document: {target}")
        self._page(handle).links.append((rect, target.dest))

    def set_metadata(self, **values: str) -> None:
        self._metadata.update({key: str(value) for key, value in values.items() if value})

    # -- output ------------------------------------------------------------

    def finalize(self) -> bytes:
        if self._finalized:
            raise WriterError("Document already finalized")
        if not self._pages:
            raise WriterError("Document has no pages")
        buffer = BytesIO()
        first = self._pages[0]
        try:
            canv = canvas.Canvas(buffer, pagesize=(first.width, first.height))
            if "title" in self._metadata:
                canv.setTitle(self._metadata["title"])
            if "author" in self._metadata:
                canv.setAuthor(self._metadata["author"])
            if "subject" in self._metadata:
                canv.setSubject(self._metadata["subject"])
            if "keywords" in self._metadata:
                canv.setKeywords(self._metadata["keywords"])
            canv.setCreator("planner")

            for index, page in enumerate(self._pages):
                canv.setPageSize((page.width, page.height))
                canv.bookmarkPage(f"page-{index + 1}", fit="Fit")
                for op in page.ops:
                    op(canv)
                for rect, dest in page.links:
                    canv.linkRect("", dest, rect, relative=0, thickness=0)
                canv.showPage()
            canv.save()
        except WriterError:
            raise
        except Exception as exc:
            raise WriterError(f"PDF encoding failed: {exc}") from exc
        self._finalized = True
        data = buffer.getvalue()
        logger.info("Encoded %d pages (%d bytes)", len(self._pages), len(data))
        return data


def _rect(x, y, w, h, fill, stroke, line_width, canv: canvas.Canvas) -> None:
    if fill is None and stroke is None:
        return
    if fill is not None:
        canv.setFillColor(fill)
    if stroke is not None:
        canv.setStrokeColor(stroke)
        canv.setLineWidth(line_width)
    canv.rect(x, y, w, h, stroke=int(stroke is not None), fill=int(fill is not None))


def _line(x1, y1, x2, y2, color, line_width, dash, canv: canvas.Canvas) -> None:
    canv.saveState()
    canv.setStrokeColor(color)
    canv.setLineWidth(line_width)
    if dash:
        canv.setDash(list(dash))
    canv.line(x1, y1, x2, y2)
    canv.restoreState()


def _circle(x, y, r, fill, stroke, line_width, canv: canvas.Canvas) -> None:
    if fill is None and stroke is None:
        return
    if fill is not None:
        canv.setFillColor(fill)
    if stroke is not None:
        canv.setStrokeColor(stroke)
        canv.setLineWidth(line_width)
    canv.circle(x, y, r, stroke=int(stroke is not None), fill=int(fill is not None))


def _text(x, y, text, font, size, color, align, rotation, canv: canvas.Canvas) -> None:
    canv.saveState()
    canv.setFillColor(color)
    canv.setFont(font, size)
    canv.translate(x, y)
    if rotation:
        canv.rotate(rotation)
    if align == "center":
        canv.drawCentredString(0, 0, text)
    elif align == "right":
        canv.drawRightString(0, 0, text)
    else:
        canv.drawString(0, 0, text)
    canv.restoreState()


def _image(reader, x, y, w, h, opacity, canv: canvas.Canvas) -> None:
    canv.saveState()
    if opacity < 1.0:
        canv.setFillAlpha(opacity)
    canv.drawImage(reader, x, y, width=w, height=h, mask="auto")
    canv.restoreState()
