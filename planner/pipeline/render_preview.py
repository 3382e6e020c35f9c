from __future__ import annotations

from pathlib import Path
from typing import Optional, Tuple

import fitz  # PyMuPDF

from ..storage import artifact_path
from .graph import PageGraph
from .types import PageType


def _pick_preview_pages(graph: Optional[PageGraph]) -> Tuple[int, int, int]:
    # cover, first month, first day; falls back to the first pages
    if graph is None or len(graph) == 0:
        return 0, 0, 0
    picks = []
    for page_type in (PageType.COVER, PageType.MONTH, PageType.DAY):
        nodes = graph.of_type(page_type)
        position = graph.position(nodes[0].id) if nodes else None
        picks.append(position if position is not None else min(len(picks), len(graph) - 1))
    return picks[0], picks[1], picks[2]


def _render_page_to_png(doc: fitz.Document, page_index: int, out_path: Path, min_px: int = 1200) -> None:
    page = doc.load_page(page_index)

    # scale so the short side comes out at roughly min_px pixels
    rect = page.rect
    short_side = min(rect.width, rect.height)
    zoom = max(1.0, min_px / float(short_side))
    mat = fitz.Matrix(zoom, zoom)

    pix = page.get_pixmap(matrix=mat, alpha=False)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    pix.save(str(out_path))


def render_previews(
    slug: str,
    pdf_path: Path,
    graph: Optional[PageGraph] = None,
    base_dir: Path | None = None,
    include_slug: bool = True,
) -> Tuple[Path, Path, Path]:
    p1 = artifact_path(slug, "preview_1", base_dir=base_dir, include_slug=include_slug)
    p2 = artifact_path(slug, "preview_2", base_dir=base_dir, include_slug=include_slug)
    p3 = artifact_path(slug, "preview_3", base_dir=base_dir, include_slug=include_slug)

    i1, i2, i3 = _pick_preview_pages(graph)

    with fitz.open(pdf_path) as doc:
        _render_page_to_png(doc, i1, p1)
        _render_page_to_png(doc, i2, p2)
        _render_page_to_png(doc, i3, p3)

    return p1, p2, p3
