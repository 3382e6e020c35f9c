from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from . import config
from .models import RunStatus, reset_engine
from .pipeline.errors import ConfigError
from .pipeline.graph import build_page_graph
from .pipeline.ingest import list_runs, load_config, register_run
from .pipeline.run import run_pipeline
from .storage import artifacts_for

app = typer.Typer(help="Hyperlinked planner PDF generator")


def _use_out_dir(out: Optional[Path]) -> None:
    if out:
        config.set_out_dir(out)
        reset_engine()


def _run_with_progress(runs: list) -> dict:
    with typer.progressbar(length=100 * len(runs), label="Rendering") as progress:
        done = {"percent": 0}

        def on_progress(event) -> None:
            # progress restarts with each run
            if event.current == 1:
                done["percent"] = 0
            step = event.percent - done["percent"]
            if step > 0:
                progress.update(step)
                done["percent"] = event.percent

        return run_pipeline(runs, on_progress=on_progress)


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def build(
    config_file: Path = typer.Option(..., "--config", help="Planner config JSON"),
    out: Optional[Path] = typer.Option(None, "--out", help="Output directory"),
) -> None:
    _use_out_dir(out)
    try:
        run = register_run(config_file)
    except (ConfigError, FileNotFoundError) as exc:
        typer.echo(f"Invalid config: {exc}", err=True)
        raise typer.Exit(code=2)
    results = _run_with_progress([run])
    typer.echo(f"READY: {len(results['READY'])}")
    typer.echo(f"FAILED: {len(results['FAILED'])}")
    for slug in results["FAILED"]:
        typer.echo(f"FAILED: {slug}")
    if results["FAILED"]:
        raise typer.Exit(code=1)
    for artifact_type, path in sorted(artifacts_for(run).items()):
        typer.echo(f"{artifact_type}: {path}")


@app.command()
def pages(
    config_file: Path = typer.Option(..., "--config", help="Planner config JSON"),
) -> None:
    try:
        planner = load_config(config_file)
    except (ConfigError, FileNotFoundError) as exc:
        typer.echo(f"Invalid config: {exc}", err=True)
        raise typer.Exit(code=2)
    graph = build_page_graph(planner)
    for node in graph:
        typer.echo(f"{node.id}\t{node.title}")
    typer.echo(f"{len(graph)} pages")


@app.command()
def retry(
    out: Optional[Path] = typer.Option(None, "--out", help="Output directory"),
) -> None:
    _use_out_dir(out)
    runs = list_runs([RunStatus.FAILED])
    if not runs:
        typer.echo("No runs to retry")
        return
    results = _run_with_progress(runs)
    typer.echo(f"READY: {len(results['READY'])}")
    typer.echo(f"FAILED: {len(results['FAILED'])}")


if __name__ == "__main__":
    app()
