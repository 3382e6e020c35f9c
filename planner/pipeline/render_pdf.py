from __future__ import annotations

import math
from datetime import timedelta
from dataclasses import dataclass
from typing import Callable, Dict

from .dates import MONTH_NAMES, month_grid, weekday_labels
from .geometry import GeometryProfile
from .identifiers import DayId, parse_page_id
from .links import LinkCollector
from .navigation import APPENDIX_FONT_SIZE, TAB_FONT_SIZE, NavIcon, NavigationOverlay
from .types import PageNode, PageType, PlannerConfig
from .writer import PageHandle, ReportLabWriter


@dataclass
class PageContext:
    writer: ReportLabWriter
    handle: PageHandle
    node: PageNode
    geometry: GeometryProfile
    planner: PlannerConfig
    style: dict
    links: LinkCollector

    @property
    def font(self) -> str:
        return self.planner.theme.font

    @property
    def accent(self) -> str:
        return self.planner.theme.accent_color


def _s(style: dict, key: str, default):
    return style.get(key, default)


def _fit_font(ctx: PageContext, text: str, base_size: float, max_width: float, floor: float = 7.0) -> float:
    """Shrink the font until the text fits the available width."""
    size = float(base_size)
    while size > floor:
        if ctx.writer.string_width(text, ctx.font, size) <= max_width:
            return size
        size -= 0.5
    return floor


# ---------------------------------------------------------------------------
# shared drawing helpers
# ---------------------------------------------------------------------------


def _draw_heading(ctx: PageContext) -> None:
    g = ctx.geometry
    ctx.writer.draw_text(
        ctx.handle,
        g.margin_left,
        g.content_top + 15,
        ctx.node.title,
        font=ctx.font,
        size=float(_s(ctx.style, "title_size", 18)),
        color=ctx.accent,
    )


def _section_box(ctx: PageContext, x: float, y: float, w: float, h: float, title: str) -> None:
    header_h = 20
    grid = _s(ctx.style, "grid_color", "#CCCCCC")
    lw = float(_s(ctx.style, "line_width", 0.5))
    ctx.writer.draw_rect(ctx.handle, x, y + h - header_h, w, header_h, fill=_s(ctx.style, "header_fill", "#F2F2F2"))
    ctx.writer.draw_line(ctx.handle, x, y + h - header_h, x + w, y + h - header_h, color=grid, line_width=lw)
    ctx.writer.draw_rect(ctx.handle, x, y, w, h, stroke=grid, line_width=lw)
    ctx.writer.draw_text(
        ctx.handle,
        x + 10,
        y + h - 14,
        title,
        font=ctx.font,
        size=float(_s(ctx.style, "label_size", 10)),
        color=_s(ctx.style, "muted_color", "#4D4D4D"),
    )


def _checkbox_line(ctx: PageContext, x: float, y: float, width: float) -> None:
    ctx.writer.draw_rect(ctx.handle, x, y, 12, 12, stroke="#B3B3B3", line_width=1)
    ctx.writer.draw_line(ctx.handle, x + 20, y + 2, x + width, y + 2, color=_s(ctx.style, "grid_color", "#CCCCCC"))


def _lines_in_box(ctx: PageContext, x: float, y: float, w: float, h: float, count: int) -> None:
    spacing = (h - 40) / count
    for i in range(count):
        ly = y + h - 40 - i * spacing
        ctx.writer.draw_line(ctx.handle, x + 10, ly, x + w - 10, ly, color=_s(ctx.style, "grid_color", "#CCCCCC"))


def _dot_grid(ctx: PageContext, x: float, top: float, cols: int, rows: int, spacing: float) -> None:
    color = _s(ctx.style, "grid_color", "#CCCCCC")
    for r in range(rows):
        for c in range(cols):
            ctx.writer.draw_circle(ctx.handle, x + c * spacing, top - r * spacing, 1, fill=color)


# ---------------------------------------------------------------------------
# navigation overlay
# ---------------------------------------------------------------------------


def _draw_icon(ctx: PageContext, icon: NavIcon) -> None:
    w = ctx.writer
    h = ctx.handle
    color = _s(ctx.style, "icon_color", "#4D4D4D")
    x, y, s = icon.x, icon.y, icon.size
    if icon.name == "home":
        w.draw_line(h, x, y + s * 0.55, x + s / 2, y + s, color=color, line_width=1.5)
        w.draw_line(h, x + s / 2, y + s, x + s, y + s * 0.55, color=color, line_width=1.5)
        w.draw_rect(h, x + s * 0.2, y, s * 0.6, s * 0.55, stroke=color, line_width=1.5)
    elif icon.name == "year":
        w.draw_rect(h, x + 1, y, s - 2, s * 0.85, stroke=color, line_width=1.5)
        w.draw_rect(h, x + 1, y + s * 0.6, s - 2, s * 0.25, fill=color)
    elif icon.name == "month":
        cell = s / 3
        for row in range(2):
            for col in range(3):
                w.draw_rect(h, x + col * cell + 1, y + row * (s / 2) + 1, cell - 2, s / 2 - 2, fill=color)
    elif icon.name == "week":
        w.draw_rect(h, x, y + s * 0.55, s, s * 0.4, fill=color)
        w.draw_rect(h, x, y + s * 0.05, s, s * 0.4, fill=color)
    elif icon.name == "prev":
        w.draw_line(h, x + s * 0.65, y + s * 0.9, x + s * 0.3, y + s / 2, color=color, line_width=2)
        w.draw_line(h, x + s * 0.3, y + s / 2, x + s * 0.65, y + s * 0.1, color=color, line_width=2)
    elif icon.name == "next":
        w.draw_line(h, x + s * 0.35, y + s * 0.9, x + s * 0.7, y + s / 2, color=color, line_width=2)
        w.draw_line(h, x + s * 0.7, y + s / 2, x + s * 0.35, y + s * 0.1, color=color, line_width=2)


def draw_navigation(ctx: PageContext, overlay: NavigationOverlay) -> None:
    for tab in overlay.tabs:
        x1, y1, x2, y2 = tab.rect
        ctx.writer.draw_rect(
            ctx.handle, x1, y1, x2 - x1, y2 - y1,
            fill=tab.color,
            stroke=_s(ctx.style, "tab_border", "#999999"),
        )
        cx, cy = tab.center
        # Offset across the strip so the rotated baseline sits centred.
        shift = TAB_FONT_SIZE / 3 if tab.rotation > 0 else -TAB_FONT_SIZE / 3
        ctx.writer.draw_text(
            ctx.handle, cx + shift, cy, tab.label,
            font=ctx.font, size=TAB_FONT_SIZE, color="#333333",
            align="center", rotation=tab.rotation,
        )

    for icon in overlay.icons:
        _draw_icon(ctx, icon)

    for label in overlay.appendix:
        ctx.writer.draw_text(
            ctx.handle, label.x, label.y, label.label,
            font=ctx.font, size=APPENDIX_FONT_SIZE, color=_s(ctx.style, "label_color", "#666666"),
        )

    overlay.emit_links(ctx.links)


# ---------------------------------------------------------------------------
# page recipes
# ---------------------------------------------------------------------------


def _page_cover(ctx: PageContext) -> None:
    g = ctx.geometry
    cover = ctx.planner.cover

    if cover is not None and cover.image:
        image = ctx.writer.embed_image(cover.image)
        scale = max(g.width / image.width, g.height / image.height)
        w = image.width * scale
        h = image.height * scale
        ctx.writer.draw_image(ctx.handle, image, (g.width - w) / 2, (g.height - h) / 2, w, h, opacity=0.3)

    title = (cover.title if cover and cover.title else None) or f"{ctx.planner.year} Planner"
    size = _fit_font(ctx, title, float(_s(ctx.style, "cover_title_size", 48)), g.width - 2 * g.margin_left)
    ctx.writer.draw_text(ctx.handle, g.width / 2, g.height * 0.6, title, font=ctx.font, size=size, color=ctx.accent, align="center")

    if cover is not None and cover.subtitle:
        sub_size = _fit_font(ctx, cover.subtitle, float(_s(ctx.style, "cover_subtitle_size", 24)), g.width - 2 * g.margin_left)
        ctx.writer.draw_text(
            ctx.handle, g.width / 2, g.height * 0.6 - 40, cover.subtitle,
            font=ctx.font, size=sub_size, color="#666666", align="center",
        )


def _page_index(ctx: PageContext) -> None:
    g = ctx.geometry
    ml, mb, cw, ch = g.margin_left, g.margin_bottom, g.content_width, g.content_height

    col_gap = 15
    col_w = (cw - col_gap * 2) / 3
    top_h = ch * 0.65
    bottom_h = ch * 0.30
    top_y = mb + ch

    col2 = ml + col_w + col_gap
    col3 = ml + (col_w + col_gap) * 2

    _section_box(ctx, ml, top_y - top_h, col_w, top_h, "ACTIVE PROJECTS")
    _lines_in_box(ctx, ml, top_y - top_h, col_w, top_h, 20)
    _section_box(ctx, col2, top_y - top_h, col_w, top_h, "AREAS")
    _lines_in_box(ctx, col2, top_y - top_h, col_w, top_h, 20)

    split_h = (top_h - 15) / 2
    _section_box(ctx, col3, top_y - split_h, col_w, split_h, "LEARNINGS")
    _lines_in_box(ctx, col3, top_y - split_h, col_w, split_h, 10)
    _section_box(ctx, col3, top_y - top_h, col_w, split_h, "TRAVEL")
    _lines_in_box(ctx, col3, top_y - top_h, col_w, split_h, 10)

    books_w = col_w * 2 + col_gap
    _section_box(ctx, ml, mb, books_w, bottom_h, "BOOKS")
    _lines_in_box(ctx, ml, mb, books_w, bottom_h, 8)
    _section_box(ctx, col3, mb, col_w, bottom_h, "LINKS")
    _lines_in_box(ctx, col3, mb, col_w, bottom_h, 8)


def _page_year(ctx: PageContext) -> None:
    g = ctx.geometry
    ml, mb, cw, ch = g.margin_left, g.margin_bottom, g.content_width, g.content_height

    goals_h = ch * 0.2
    grid_h = ch - goals_h - 20
    cols = 3
    months = list(ctx.node.links)
    rows = max(4, math.ceil(len(months) / cols))
    cell_w = cw / cols
    cell_h = grid_h / rows

    for i, link in enumerate(months):
        col = i % cols
        row = i // cols
        x = ml + col * cell_w
        y = mb + goals_h + 20 + grid_h - (row + 1) * cell_h

        ctx.writer.draw_rect(
            ctx.handle, x + 5, y + 5, cell_w - 10, cell_h - 10,
            fill=_s(ctx.style, "shade_fill", "#FAFAFA"),
            stroke=_s(ctx.style, "faint_color", "#E6E6E6"),
            line_width=1,
        )
        month = parse_page_id(link.target_page_id)
        label = MONTH_NAMES[month.month - 1]
        if month.year != ctx.planner.year:
            label = f"{label} {month.year}"
        ctx.writer.draw_text(
            ctx.handle, x + 15, y + cell_h - 25, label,
            font=ctx.font, size=float(_s(ctx.style, "heading_size", 12)),
        )
        ctx.links.link((x + 5, y + 5, x + cell_w - 5, y + cell_h - 5), link.target_page_id)

    ctx.writer.draw_text(ctx.handle, ml, mb + goals_h - 15, "Yearly Goals", font=ctx.font, size=14)
    ctx.writer.draw_rect(ctx.handle, ml, mb, cw, goals_h - 25, stroke=_s(ctx.style, "grid_color", "#CCCCCC"))

    spacing = 25
    for i in range(int((goals_h - 35) // spacing)):
        ly = mb + goals_h - 45 - i * spacing
        ctx.writer.draw_line(
            ctx.handle, ml + 10, ly, ml + cw - 10, ly,
            color=_s(ctx.style, "grid_color", "#CCCCCC"), dash=(2, 2),
        )


def _page_month(ctx: PageContext) -> None:
    g = ctx.geometry
    ml, mb, cw, ch = g.margin_left, g.margin_bottom, g.content_width, g.content_height
    anchor = ctx.node.date

    goals_h = ch * 0.2
    grid_h = ch - goals_h - 20
    header_h = 30
    cell_w = cw / 7
    cell_h = (grid_h - header_h) / 6
    header_y = mb + goals_h + 20 + grid_h - header_h

    for i, label in enumerate(weekday_labels(ctx.planner.week_start)):
        x = ml + i * cell_w
        ctx.writer.draw_rect(
            ctx.handle, x, header_y, cell_w, header_h,
            fill=_s(ctx.style, "header_fill", "#F2F2F2"),
            stroke=_s(ctx.style, "grid_color", "#CCCCCC"),
        )
        ctx.writer.draw_text(ctx.handle, x + 5, header_y + 10, label, font=ctx.font, size=10, color="#4D4D4D")

    if anchor is not None:
        days = month_grid(anchor.year, anchor.month, ctx.planner.week_start)
        for index, day in enumerate(days[: 6 * 7]):
            row, col = divmod(index, 7)
            in_month = day.month == anchor.month
            x = ml + col * cell_w
            y = header_y - (row + 1) * cell_h
            ctx.writer.draw_rect(
                ctx.handle, x, y, cell_w, cell_h,
                fill="#FFFFFF" if in_month else _s(ctx.style, "shade_fill", "#FAFAFA"),
                stroke=_s(ctx.style, "grid_color", "#CCCCCC"),
            )
            ctx.writer.draw_text(
                ctx.handle, x + 5, y + cell_h - 15, str(day.day),
                font=ctx.font, size=12, color="#000000" if in_month else "#999999",
            )
            ctx.links.link((x, y, x + cell_w, y + cell_h), DayId(day))

    _section_box(ctx, ml, mb, cw, goals_h, "MONTHLY GOALS")
    _lines_in_box(ctx, ml, mb, cw, goals_h, 5)


def _page_week(ctx: PageContext) -> None:
    g = ctx.geometry
    ml, mb, cw, ch = g.margin_left, g.margin_bottom, g.content_width, g.content_height
    start = ctx.node.date

    top_h = ch * 0.2
    days_h = ch - top_h - 20
    day_h = days_h / 7
    half_w = (cw - 20) / 2
    grid = _s(ctx.style, "grid_color", "#CCCCCC")

    ctx.writer.draw_text(ctx.handle, ml, mb + ch - 15, "Weekly Focus", font=ctx.font, size=12)
    ctx.writer.draw_rect(ctx.handle, ml, mb + ch - top_h, half_w, top_h - 25, stroke=grid)

    habit_x = ml + half_w + 20
    habit_y = mb + ch - top_h
    habit_h = top_h - 25
    ctx.writer.draw_text(ctx.handle, habit_x, mb + ch - 15, "Habit Tracker", font=ctx.font, size=12)

    header_h = 20
    row_h = (habit_h - header_h) / 5
    name_w = 90
    col_w = (half_w - name_w) / 7
    for i, label in enumerate(weekday_labels(ctx.planner.week_start, width=1)):
        ctx.writer.draw_text(
            ctx.handle, habit_x + name_w + i * col_w + col_w / 2 - 3, habit_y + habit_h - 14, label,
            font=ctx.font, size=9, color="#666666",
        )
    for i in range(5):
        y = habit_y + habit_h - header_h - (i + 1) * row_h
        ctx.writer.draw_line(ctx.handle, habit_x, y, habit_x + name_w - 10, y, color=grid)
        for d in range(7):
            cx = habit_x + name_w + d * col_w + col_w / 2 - 6
            cy = y + row_h / 2 - 6
            ctx.writer.draw_rect(ctx.handle, cx, cy, 12, 12, stroke="#B3B3B3")

    if start is None:
        return
    names = weekday_labels(ctx.planner.week_start, width=9)
    for i in range(7):
        day = start + timedelta(days=i)
        y = mb + days_h - (i + 1) * day_h
        ctx.writer.draw_rect(ctx.handle, ml, y, cw, day_h, fill="#FFFFFF", stroke=grid)
        ctx.writer.draw_text(ctx.handle, ml + 10, y + day_h - 20, names[i], font=ctx.font, size=12)
        ctx.writer.draw_text(
            ctx.handle, ml + 100, y + day_h - 20, f"{day.strftime('%b')} {day.day}",
            font=ctx.font, size=12, color="#808080",
        )
        ctx.links.link((ml, y, ml + cw, y + day_h), DayId(day))


def _page_day(ctx: PageContext) -> None:
    g = ctx.geometry
    ml, mb, cw, ch = g.margin_left, g.margin_bottom, g.content_width, g.content_height
    w = ctx.writer
    h = ctx.handle

    col_gap = 20
    left_w = (cw - col_gap) * 0.4
    right_w = (cw - col_gap) * 0.6
    right_x = ml + left_w + col_gap
    section_gap = 15

    # left column: priorities then schedule
    current_y = mb + ch
    top3_h = 100
    _section_box(ctx, ml, current_y - top3_h, left_w, top3_h, "TOP 3 PRIORITIES")
    for i in range(3):
        _checkbox_line(ctx, ml + 10, current_y - 40 - i * 25, left_w - 20)
    current_y -= top3_h + section_gap

    schedule_h = current_y - mb
    _section_box(ctx, ml, mb, left_w, schedule_h, "SCHEDULE")
    start_hour, end_hour = 6, 22
    hour_h = (schedule_h - 40) / (end_hour - start_hour + 1)
    for hour in range(start_hour, end_hour + 1):
        y = mb + schedule_h - 40 - (hour - start_hour) * hour_h
        w.draw_text(h, ml + 5, y - 4, f"{hour}:00", font=ctx.font, size=9, color="#808080")
        w.draw_line(h, ml + 35, y, ml + left_w - 10, y, color=_s(ctx.style, "faint_color", "#E6E6E6"))

    # right column: to-do, reflection, trackers, notes
    current_y = mb + ch
    todo_lines = 10
    todo_h = todo_lines * 20 + 30
    _section_box(ctx, right_x, current_y - todo_h, right_w, todo_h, "TO-DO LIST")
    for i in range(todo_lines):
        _checkbox_line(ctx, right_x + 10, current_y - 40 - i * 20, right_w - 20)
    current_y -= todo_h + section_gap

    reflect_h = 80
    _section_box(ctx, right_x, current_y - reflect_h, right_w, reflect_h, "REFLECT / GRATITUDE")
    _lines_in_box(ctx, right_x, current_y - reflect_h, right_w, reflect_h, 2)
    current_y -= reflect_h + section_gap

    tracker_h = 50
    tracker_y = current_y - tracker_h
    half = (right_w - 10) / 2
    _section_box(ctx, right_x, tracker_y, half, tracker_h, "WATER")
    drop = 12
    drop_gap = 5
    drop_x = right_x + (half - 6 * (drop + drop_gap)) / 2 + 5
    for i in range(6):
        w.draw_circle(h, drop_x + i * (drop + drop_gap) + drop / 2, tracker_y + 15, drop / 2,
                      fill="#FFFFFF", stroke="#999999", line_width=1)

    weather_x = right_x + half + 10
    _section_box(ctx, weather_x, tracker_y, half, tracker_h, "WEATHER")
    icon = 12
    icon_gap = 8
    icon_x = weather_x + (half - 6 * (icon + icon_gap)) / 2 + 5
    for i in range(5):
        w.draw_circle(h, icon_x + i * (icon + icon_gap) + icon / 2, tracker_y + 15, icon / 2,
                      stroke="#808080", line_width=1)
    current_y -= tracker_h + section_gap

    notes_h = current_y - mb
    _section_box(ctx, right_x, mb, right_w, notes_h, "NOTES")
    spacing = 20
    cols = int((right_w - 20) // spacing)
    rows = int((notes_h - 40) // spacing)
    _dot_grid(ctx, right_x + 10, mb + notes_h - 40, max(cols, 0), max(rows, 0), spacing)


def _page_note(ctx: PageContext) -> None:
    g = ctx.geometry
    ml, mb, cw, ch = g.margin_left, g.margin_bottom, g.content_width, g.content_height
    template = ctx.node.metadata.get("template", "lined")
    line_h = (ctx.planner.theme.line_height or 1.2) * 20

    if template == "lined":
        for i in range(int(ch // line_h)):
            y = mb + ch - (i + 1) * line_h
            ctx.writer.draw_line(ctx.handle, ml, y, ml + cw, y, color=_s(ctx.style, "grid_color", "#CCCCCC"))
    elif template == "dotted":
        _dot_grid(ctx, ml, mb + ch - line_h, int(cw // line_h), int(ch // line_h), line_h)


PAGE_RENDERERS: Dict[PageType, Callable[[PageContext], None]] = {
    PageType.COVER: _page_cover,
    PageType.INDEX: _page_index,
    PageType.YEAR: _page_year,
    PageType.MONTH: _page_month,
    PageType.WEEK: _page_week,
    PageType.DAY: _page_day,
    PageType.NOTE: _page_note,
}


def render_page(ctx: PageContext, overlay: NavigationOverlay | None) -> None:
    if overlay is not None:
        draw_navigation(ctx, overlay)
    if ctx.node.type != PageType.COVER:
        _draw_heading(ctx)
    PAGE_RENDERERS[ctx.node.type](ctx)
