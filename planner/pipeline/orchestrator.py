"""
Two-pass generation.

Pass 1 (ALLOCATING) asks the writer for one blank page per graph node and
records id -> handle. Only a fully allocated PageAllocator can be sealed into
a HandleResolver, and only a HandleResolver lets pass 2 (RESOLVING) run, so
a page can link to any other page whatever their order in the document.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Optional

from .. import config
from .errors import GenerationError, WriterError
from .geometry import GeometryProfile, geometry_for
from .graph import PageGraph, build_page_graph
from .ingest import validate_config
from .links import LinkCollector
from .navigation import build_overlay
from .render_pdf import PageContext, render_page
from .types import LinkRequest, PageNode, PlannerConfig, ProgressEvent
from .writer import PageHandle, ReportLabWriter


logger = logging.getLogger(__name__)

ProgressSink = Callable[[ProgressEvent], None]


class RunState(str, Enum):
    ALLOCATING = "ALLOCATING"
    RESOLVING = "RESOLVING"


class HandleResolver:
    """Read-only id -> page handle map; exists only once allocation is complete."""

    def __init__(self, handles: Mapping[str, PageHandle]) -> None:
        self._handles = MappingProxyType(dict(handles))

    def __call__(self, page_id: str) -> Optional[PageHandle]:
        return self._handles.get(page_id)

    def __len__(self) -> int:
        return len(self._handles)


class PageAllocator:
    def __init__(self, graph: PageGraph, writer: ReportLabWriter) -> None:
        self._graph = graph
        self._writer = writer
        self._handles: Dict[str, PageHandle] = {}

    def allocate(self, planner: PlannerConfig) -> None:
        for node in self._graph:
            # Recomputed per page; every page of one run has the same size.
            geometry = geometry_for(planner)
            self._handles[node.id] = self._writer.create_page(geometry.width, geometry.height)

    @property
    def complete(self) -> bool:
        return len(self._handles) == len(self._graph)

    def seal(self) -> HandleResolver:
        if not self.complete:
            missing = [node.id for node in self._graph if node.id not in self._handles]
            raise GenerationError("allocate", f"{len(missing)} pages have no handle", page_id=missing[0])
        return HandleResolver(self._handles)


@dataclass
class GenerationResult:
    pdf_bytes: bytes
    graph: PageGraph
    links: Dict[str, List[LinkRequest]] = field(default_factory=dict)

    @property
    def page_count(self) -> int:
        return len(self.graph)

    @property
    def link_count(self) -> int:
        return sum(len(requests) for requests in self.links.values())


class Generation:
    """One generation run. Owns its graph, writer and handle map."""

    def __init__(
        self,
        planner: PlannerConfig,
        on_progress: Optional[ProgressSink] = None,
        writer: Optional[ReportLabWriter] = None,
        graph: Optional[PageGraph] = None,
    ) -> None:
        self.planner = planner
        self.on_progress = on_progress
        self.writer = writer or ReportLabWriter()
        self.graph = graph if graph is not None else build_page_graph(planner)
        self.state = RunState.ALLOCATING
        self.links: Dict[str, List[LinkRequest]] = {}
        self.style = config.load_style_preset()

    def _emit(self, event: ProgressEvent) -> None:
        if self.on_progress is not None:
            self.on_progress(event)

    def allocate(self) -> HandleResolver:
        allocator = PageAllocator(self.graph, self.writer)
        try:
            allocator.allocate(self.planner)
        except WriterError as exc:
            raise GenerationError("allocate", str(exc)) from exc
        resolver = allocator.seal()
        self.state = RunState.RESOLVING
        logger.info("Allocated %d pages", len(resolver))
        return resolver

    def _resolve_node(self, node: PageNode, geometry: GeometryProfile, resolver: HandleResolver) -> None:
        handle = resolver(node.id)
        collector = LinkCollector(node.id, resolver)
        ctx = PageContext(
            writer=self.writer,
            handle=handle,
            node=node,
            geometry=geometry,
            planner=self.planner,
            style=self.style,
            links=collector,
        )
        render_page(ctx, build_overlay(node, self.planner, geometry))
        for request in collector.requests:
            self.writer.add_link(handle, request.rect, resolver(request.target_id))
        self.links[node.id] = collector.requests

    def resolve(self, resolver: HandleResolver) -> None:
        if self.state is not RunState.RESOLVING:
            raise GenerationError("resolve", "pages must be allocated before links are resolved")
        total = len(self.graph)
        for current, node in enumerate(self.graph, start=1):
            geometry = geometry_for(self.planner)
            try:
                self._resolve_node(node, geometry, resolver)
            except WriterError as exc:
                raise GenerationError("render", str(exc), page_id=node.id) from exc
            self._emit(ProgressEvent(current=current, total=total, message=f"Rendering {node.title}..."))

    def encode(self) -> bytes:
        self.writer.set_metadata(
            title=(self.planner.cover.title if self.planner.cover and self.planner.cover.title else None)
            or f"{self.planner.year} Planner",
            subject=f"{self.planner.duration_months}-month planner from {self.planner.year}-{self.planner.start_month:02d}",
            keywords="planner, hyperlinked",
        )
        try:
            return self.writer.finalize()
        except WriterError as exc:
            raise GenerationError("encode", str(exc)) from exc

    def run(self) -> GenerationResult:
        resolver = self.allocate()
        self.resolve(resolver)
        pdf_bytes = self.encode()
        return GenerationResult(pdf_bytes=pdf_bytes, graph=self.graph, links=dict(self.links))


def generate_planner(planner: PlannerConfig, on_progress: Optional[ProgressSink] = None) -> GenerationResult:
    """Validate, build the page graph and run both passes for one planner."""
    return Generation(validate_config(planner), on_progress=on_progress).run()
