from __future__ import annotations

import pytest

from planner.pipeline.errors import WriterError
from planner.pipeline.writer import PageHandle, ReportLabWriter, to_color


def test_finalize_encodes_pages_and_links() -> None:
    writer = ReportLabWriter()
    first = writer.create_page(600, 960)
    second = writer.create_page(600, 960)
    assert (first.index, first.dest) == (0, "page-1")
    assert second.dest == "page-2"

    writer.draw_rect(first, 10, 10, 100, 50, fill="#F2F2F2", stroke="#CCCCCC")
    writer.draw_line(first, 0, 0, 100, 100, color="#3b82f6", dash=(2, 2))
    writer.draw_circle(first, 50, 50, 5, fill=(0.9, 0.9, 0.9))
    writer.draw_text(first, 300, 500, "January", size=12, align="center", rotation=90)
    writer.add_link(first, (10, 10, 110, 60), second)
    writer.add_link(second, (0, 0, 20, 20), first)
    writer.set_metadata(title="2025 Planner", subject="", keywords="planner")

    assert writer.page_count == 2
    assert writer.link_count(first) == 1
    data = writer.finalize()
    assert data.startswith(b"%PDF")


def test_finalize_twice_or_empty_fails() -> None:
    with pytest.raises(WriterError):
        ReportLabWriter().finalize()

    writer = ReportLabWriter()
    page = writer.create_page(100, 100)
    writer.finalize()
    with pytest.raises(WriterError):
        writer.finalize()
    with pytest.raises(WriterError):
        writer.draw_rect(page, 0, 0, 10, 10, fill="#000000")


def test_link_to_foreign_page_is_rejected() -> None:
    writer = ReportLabWriter()
    page = writer.create_page(100, 100)
    with pytest.raises(WriterError):
        writer.add_link(page, (0, 0, 10, 10), PageHandle(index=5, dest="page-6"))


def test_unreadable_image_raises_writer_error() -> None:
    writer = ReportLabWriter()
    with pytest.raises(WriterError):
        writer.embed_image(b"definitely not an image")


def test_to_color() -> None:
    assert to_color(None) is None
    assert to_color("3b82f6").hexval() == to_color("#3b82f6").hexval()
    assert to_color((1, 0, 0)).red == 1
