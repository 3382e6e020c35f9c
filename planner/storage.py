from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable

from sqlalchemy import delete
from sqlmodel import select

from . import config
from .models import Artifact, GenerationRun, get_session

logger = logging.getLogger(__name__)

# One file per artifact type inside a run directory.
ARTIFACT_NAMES = {
    "pdf": "planner.pdf",
    "preview_1": "preview_1.png",
    "preview_2": "preview_2.png",
    "preview_3": "preview_3.png",
    "config": "config.json",
    "metadata": "metadata.json",
    "readme": "README.txt",
    "bundle": "bundle.zip",
    "error": "error.log",
}


def artifact_path(
    slug: str,
    artifact_type: str,
    base_dir: Path | None = None,
    include_slug: bool = True,
) -> Path:
    """
    Where one artifact of a run lives. `base_dir` defaults to the output
    directory; with include_slug=False the file goes straight into base_dir,
    which is how a run's temp directory is filled before it is moved.
    """
    if artifact_type not in ARTIFACT_NAMES:
        raise ValueError(f"Unknown artifact type: {artifact_type}")
    directory = base_dir or config.OUT_DIR
    if include_slug:
        directory = directory / slug
    directory.mkdir(parents=True, exist_ok=True)
    return directory / ARTIFACT_NAMES[artifact_type]


def record_artifacts(run: GenerationRun, artifacts: Iterable[tuple[str, Path]]) -> int:
    """Replace the run's artifact rows with the files just produced."""
    rows = [
        Artifact(
            run_id=run.id,
            type=artifact_type,
            path=path.relative_to(config.OUT_DIR).as_posix(),
            size_bytes=path.stat().st_size,
        )
        for artifact_type, path in artifacts
    ]
    with get_session() as session:
        session.execute(delete(Artifact).where(Artifact.run_id == run.id))
        session.add_all(rows)
        session.commit()
    logger.info("Recorded %d artifacts for %s", len(rows), run.slug)
    return len(rows)


def artifacts_for(run: GenerationRun) -> Dict[str, Path]:
    with get_session() as session:
        rows = session.exec(select(Artifact).where(Artifact.run_id == run.id)).all()
    return {row.type: config.OUT_DIR / row.path for row in rows}
