from __future__ import annotations

from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from pathlib import Path
import json
import logging
import shutil
import threading
from typing import Iterable, List, Optional

from .. import config
from ..models import GenerationRun, RunStatus, get_session, init_db
from ..storage import artifact_path, record_artifacts
from .errors import ConfigError, GenerationError
from .ingest import config_to_dict, load_config
from .metadata import build_metadata, write_metadata
from .orchestrator import GenerationResult, ProgressSink, generate_planner
from .package import create_bundle, create_readme
from .qa import audit_pdf
from .render_preview import render_previews
from .types import PlannerConfig, ProgressEvent


logger = logging.getLogger(__name__)


class GenerationTask:
    """Handle on one background generation. Cancelling stops it at the next page."""

    def __init__(self, future: Future, cancel_event: threading.Event) -> None:
        self._future = future
        self._cancel_event = cancel_event

    def cancel(self) -> None:
        self._cancel_event.set()
        self._future.cancel()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def done(self) -> bool:
        return self._future.done()

    def result(self, timeout: Optional[float] = None) -> GenerationResult:
        return self._future.result(timeout=timeout)


def _generate(planner: PlannerConfig, on_progress: Optional[ProgressSink], cancel_event: threading.Event) -> GenerationResult:
    def sink(event: ProgressEvent) -> None:
        if cancel_event.is_set():
            raise CancelledError(f"Generation cancelled at page {event.current} of {event.total}")
        if on_progress is not None:
            on_progress(event)

    return generate_planner(planner, on_progress=sink)


def start_generation(planner: PlannerConfig, on_progress: Optional[ProgressSink] = None) -> GenerationTask:
    """Run one generation on its own single-worker executor."""
    cancel_event = threading.Event()
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="planner")
    try:
        future = executor.submit(_generate, planner, on_progress, cancel_event)
    finally:
        executor.shutdown(wait=False)
    return GenerationTask(future, cancel_event)


def _write_error(slug: str, message: str) -> None:
    error_path = artifact_path(slug, "error", base_dir=config.OUT_DIR)
    error_path.write_text(message, encoding="utf-8")


def _prepare_temp_dir(slug: str) -> Path:
    temp_dir = config.OUT_DIR / f"{slug}.tmp"
    if temp_dir.exists():
        shutil.rmtree(temp_dir)
    temp_dir.mkdir(parents=True, exist_ok=True)
    return temp_dir


def _finalize_artifacts(
    temp_dir: Path,
    final_dir: Path,
    artifacts: List[tuple[str, Path]],
) -> List[tuple[str, Path]]:
    if final_dir.exists():
        shutil.rmtree(final_dir)
    temp_dir.replace(final_dir)
    finalized: List[tuple[str, Path]] = []
    for artifact_type, path in artifacts:
        finalized.append((artifact_type, final_dir / path.relative_to(temp_dir)))
    return finalized


def process_run(
    run: GenerationRun,
    on_progress: Optional[ProgressSink] = None,
) -> tuple[List[tuple[str, Path]], GenerationResult]:
    planner = load_config(Path(run.config_path))
    temp_dir = _prepare_temp_dir(run.slug)
    try:
        result = start_generation(planner, on_progress).result()
        artifacts: List[tuple[str, Path]] = []

        pdf_path = artifact_path(run.slug, "pdf", base_dir=temp_dir, include_slug=False)
        pdf_path.write_bytes(result.pdf_bytes)
        artifacts.append(("pdf", pdf_path))

        errors = audit_pdf(pdf_path, result)
        if errors:
            raise GenerationError("audit", "; ".join(errors))

        previews = render_previews(run.slug, pdf_path, result.graph, base_dir=temp_dir, include_slug=False)
        artifacts.extend(
            [
                ("preview_1", previews[0]),
                ("preview_2", previews[1]),
                ("preview_3", previews[2]),
            ]
        )

        config_path = artifact_path(run.slug, "config", base_dir=temp_dir, include_slug=False)
        config_path.write_text(json.dumps(config_to_dict(planner), indent=2), encoding="utf-8")
        artifacts.append(("config", config_path))

        metadata_path = write_metadata(
            build_metadata(planner, result, run.slug), base_dir=temp_dir, include_slug=False
        )
        artifacts.append(("metadata", metadata_path))

        readme_path = create_readme(run.slug, planner, base_dir=temp_dir, include_slug=False)
        bundle_path = create_bundle(run.slug, pdf_path, readme_path, base_dir=temp_dir, include_slug=False)
        artifacts.append(("readme", readme_path))
        artifacts.append(("bundle", bundle_path))
    except BaseException:
        shutil.rmtree(temp_dir, ignore_errors=True)
        raise

    final_dir = config.OUT_DIR / run.slug
    artifacts = _finalize_artifacts(temp_dir, final_dir, artifacts)
    return artifacts, result


def _failure_stage(exc: Exception) -> str:
    if isinstance(exc, GenerationError):
        return exc.stage
    if isinstance(exc, (ConfigError, FileNotFoundError)):
        return "config"
    return "pipeline"


def run_pipeline(
    runs: Iterable[GenerationRun],
    on_progress: Optional[ProgressSink] = None,
) -> dict[str, list[str]]:
    init_db()
    results: dict[str, list[str]] = {"READY": [], "FAILED": []}
    with get_session() as session:
        for run in runs:
            logger.info("Generating %s from %s", run.slug, run.config_path)
            try:
                artifacts, result = process_run(run, on_progress)
                status = RunStatus.READY
                errors = []
                stage = None
            except Exception as exc:
                logger.exception("Pipeline error for %s", run.slug)
                status = RunStatus.FAILED
                artifacts = []
                errors = [str(exc)]
                stage = _failure_stage(exc)
                result = None

            run.status = status
            if result is not None:
                run.page_count = result.page_count
                run.link_count = result.link_count
            if status == RunStatus.FAILED:
                run.fail_stage = stage or "pipeline"
                run.fail_detail = errors[0] if errors else "Unknown error"
            else:
                run.fail_stage = None
                run.fail_detail = None
            session.add(run)
            session.commit()
            session.refresh(run)

            if status == RunStatus.READY:
                record_artifacts(run, artifacts)
                results["READY"].append(run.slug)
            else:
                message = "\n".join(errors) if errors else "Unknown error"
                _write_error(run.slug, f"[{run.fail_stage}] {message}")
                results["FAILED"].append(run.slug)
    return results
