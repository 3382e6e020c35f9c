from __future__ import annotations

from pathlib import Path
import zipfile

from ..storage import artifact_path
from .types import PlannerConfig


def create_readme(
    slug: str,
    planner: PlannerConfig,
    base_dir: Path | None = None,
    include_slug: bool = True,
) -> Path:
    path = artifact_path(slug, "readme", base_dir=base_dir, include_slug=include_slug)
    tab_side = "left" if planner.handedness == "right" else "right"
    lines = [
        f"Your {planner.year} hyperlinked planner ({planner.device}, {planner.orientation}).",
        "1. Open planner.pdf in an annotation app that follows internal links.",
        f"2. Tap a month tab on the {tab_side} edge to jump to that month.",
        "3. The icons at the top lead home, to the year, month and week, and to the previous or next day.",
        "4. Appendix sections are linked from the top right of every page.",
    ]
    path.write_text("\n".join(lines), encoding="utf-8")
    return path


def create_bundle(
    slug: str,
    pdf_path: Path,
    readme_path: Path,
    base_dir: Path | None = None,
    include_slug: bool = True,
) -> Path:
    """
    Zip one run for distribution: the PDF, its three previews, config.json,
    metadata.json and the README. Every input must already exist.
    """
    bundle_path = artifact_path(slug, "bundle", base_dir=base_dir, include_slug=include_slug)
    run_dir = bundle_path.parent

    required_files = [
        pdf_path,
        readme_path,
        run_dir / "preview_1.png",
        run_dir / "preview_2.png",
        run_dir / "preview_3.png",
        run_dir / "config.json",
        run_dir / "metadata.json",
    ]

    missing = [p for p in required_files if not p.exists()]
    if missing:
        missing_list = ", ".join(str(p) for p in missing)
        raise FileNotFoundError(f"[{slug}] bundle inputs missing: {missing_list}")

    # fixed order, basenames only
    with zipfile.ZipFile(bundle_path, "w", compression=zipfile.ZIP_DEFLATED) as bundle:
        for p in required_files:
            bundle.write(p, arcname=p.name)

    return bundle_path
