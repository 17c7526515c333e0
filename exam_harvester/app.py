"""Typer CLI entrypoint for Exam Harvester."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer
import yaml
from pydantic import ValidationError
from rich import box
from rich.console import Console
from rich.table import Table

from .config import ConfigRepository, HarvestConfig
from .engine.renderer import RenderMeta, build_renderer, save_links
from .errors import DiscoveryError, FetchError
from .logging_conf import configure_logging, tail_log
from .orchestrator import Pipeline
from .ui import ProgressReporter

app = typer.Typer(
    help="Harvest exam questions from discussion listings or the cached mirror.",
    no_args_is_help=True,
    rich_markup_mode=None,
)
config_app = typer.Typer(
    name="config",
    help="Inspect or persist the harvester configuration.",
    no_args_is_help=True,
    rich_markup_mode=None,
)
log_app = typer.Typer(
    name="log",
    help="Inspect log files.",
    no_args_is_help=True,
    rich_markup_mode=None,
)

console = Console()


@dataclass
class AppState:
    repository: ConfigRepository
    config: HarvestConfig
    verbose: bool = False


def build_state(verbose: bool, config_path: Path | None = None) -> AppState:
    repository = ConfigRepository()
    configure_logging(verbose=verbose, log_dir=repository.locator.logs_dir)
    try:
        config = repository.load(config_path)
    except (ValueError, FileNotFoundError) as exc:
        console.print(f"Invalid configuration: {exc}", style="red")
        raise typer.Exit(code=1)
    return AppState(repository=repository, config=config, verbose=verbose)


def build_pipeline(config: HarvestConfig, show_progress: bool) -> Pipeline:
    factory = (lambda stage: ProgressReporter(stage)) if show_progress else None
    return Pipeline(config, progress_factory=factory)


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbose=False)
        ctx.obj = state
    return state


def _effective_config(
    base: HarvestConfig,
    *,
    output: Optional[Path],
    fmt: Optional[str],
    include_comments: bool,
    save_links_flag: bool,
    discovery_workers: Optional[int],
    fetch_workers: Optional[int],
    rps: Optional[float],
    no_cache: bool,
) -> HarvestConfig:
    """Layer single-run CLI overrides on top of the persisted configuration."""

    data = base.model_dump()
    if output is not None:
        data["output"]["path"] = output
    if fmt is not None:
        data["output"]["format"] = fmt
    if include_comments:
        data["output"]["include_comments"] = True
    if save_links_flag:
        data["output"]["save_links"] = True
    if discovery_workers is not None:
        data["concurrency"]["discovery"] = discovery_workers
    if fetch_workers is not None:
        data["concurrency"]["fetch"] = fetch_workers
    if rps is not None:
        data["rate_limit"]["requests_per_second"] = rps
    if no_cache:
        data["cache"]["enabled"] = False
    return HarvestConfig.model_validate(data)


def _render_summary_table(result, output_path: Path, links_path: Path | None) -> Table:
    summary = result.summary
    table = Table(title=f"Harvest summary · {summary.provider}", box=box.SIMPLE_HEAD)
    table.add_column("Metric", style="cyan", no_wrap=True)
    table.add_column("Value", style="green", overflow="fold")
    table.add_row("Origin", summary.origin)
    if summary.origin == "live":
        table.add_row("Listing pages", str(summary.pages))
        table.add_row("Links discovered", str(summary.discovered_links))
        table.add_row("Unique links", str(summary.unique_links))
    table.add_row("Total questions", str(len(result.records)))
    table.add_row("Scheduled", str(summary.scheduled))
    table.add_row("Failed", str(summary.failed))
    table.add_row("Elapsed", f"{summary.elapsed:.2f}s")
    table.add_row("Output file", str(output_path))
    if links_path is not None:
        table.add_row("Saved links", str(links_path))
    return table


app.add_typer(config_app, name="config")
app.add_typer(log_app, name="log")


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
    config_path: Optional[Path] = typer.Option(
        None, "--config", help="Read settings from this YAML/JSON file instead of the default."
    ),
) -> None:
    ctx.obj = build_state(verbose, config_path)


@app.command("run", help="Harvest the questions of one provider, optionally filtered by exam.")
def run(
    ctx: typer.Context,
    provider: str = typer.Argument(..., help="Provider name as it appears in discussion URLs."),
    search: str = typer.Option("", "--search", "-s", help="Exam filter matched against link href and text."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output document path."),
    fmt: Optional[str] = typer.Option(None, "--type", help="Output format: md, html, text or pdf."),
    include_comments: bool = typer.Option(False, "--comments", "-c", help="Include discussion comments."),
    save_links_flag: bool = typer.Option(
        False, "--save-links", help="Also write the unique question links, one per line."
    ),
    no_cache: bool = typer.Option(False, "--no-cache", help="Skip the cached mirror and scrape live."),
    token: Optional[str] = typer.Option(None, "--token", "-t", help="GitHub token for the cache lookup."),
    discovery_workers: Optional[int] = typer.Option(None, "--discovery-workers", help="Listing-page worker ceiling."),
    fetch_workers: Optional[int] = typer.Option(None, "--fetch-workers", help="Question-page worker ceiling."),
    rps: Optional[float] = typer.Option(None, "--rps", help="Requests per second per stage."),
    quiet: bool = typer.Option(False, "--quiet", help="Only print the output path."),
) -> None:
    state = _get_state(ctx)
    try:
        config = _effective_config(
            state.config,
            output=output,
            fmt=fmt,
            include_comments=include_comments,
            save_links_flag=save_links_flag,
            discovery_workers=discovery_workers,
            fetch_workers=fetch_workers,
            rps=rps,
            no_cache=no_cache,
        )
    except ValidationError as exc:
        console.print(f"Invalid option: {exc}", style="red")
        raise typer.Exit(code=2)

    if not search.strip() and not quiet:
        console.print("No exam filter given; every discussion of the provider will be harvested.", style="yellow")

    pipeline = build_pipeline(config, show_progress=config.enable_progress_bar and not quiet)
    try:
        result = pipeline.run(provider, search, use_cache=config.cache.enabled, token=token)
    except DiscoveryError as exc:
        console.print(str(exc), style="red")
        raise typer.Exit(code=1)
    finally:
        pipeline.close()

    if not result.records:
        console.print(f"No questions found for provider '{provider}' with filter '{search}'.", style="yellow")
        raise typer.Exit(code=1)

    renderer = build_renderer(config.output.format, config.output.include_comments)
    written = renderer.write(result.records, RenderMeta(provider=provider, exam_code=search.strip()), config.output.path)
    links_path = save_links(config.output.links_path, result.records) if config.output.save_links else None

    if quiet:
        console.print(str(written))
        return
    console.print(_render_summary_table(result, written, links_path))
    if result.summary.failed:
        console.print(f"{result.summary.failed} question page(s) could not be fetched; see the log.", style="yellow")


@app.command("exams", help="List the exams published for a provider.")
def exams(
    ctx: typer.Context,
    provider: str = typer.Argument(..., help="Provider name, e.g. amazon."),
) -> None:
    state = _get_state(ctx)
    pipeline = build_pipeline(state.config, show_progress=False)
    try:
        urls = pipeline.list_exams(provider)
    except FetchError as exc:
        console.print(str(exc), style="red")
        raise typer.Exit(code=1)
    finally:
        pipeline.close()
    if not urls:
        console.print(f"No exams found for provider '{provider}'.", style="yellow")
        raise typer.Exit(code=1)
    console.print(f"Exams for {provider} · {len(urls)}", style="cyan")
    for url in urls:
        console.print(url, soft_wrap=True, highlight=False)


@config_app.command("show", help="Print the effective configuration as YAML.")
def config_show(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    console.print(
        yaml.safe_dump(state.config.model_dump(mode="json"), allow_unicode=True, sort_keys=False),
        highlight=False,
        markup=False,
    )


@config_app.command("init", help="Write the effective configuration to the default config file.")
def config_init(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    path = state.repository.save(state.config)
    console.print(f"Configuration written to {path}", style="green")


@log_app.command("show", help="Show the most recent log lines.")
def log_show(
    ctx: typer.Context,
    tail: int = typer.Option(100, "--tail", help="Number of lines to show."),
    errors: bool = typer.Option(False, "--errors", help="Show error.log instead of harvester.log."),
) -> None:
    state = _get_state(ctx)
    path = state.repository.locator.logs_dir / ("error.log" if errors else "harvester.log")
    lines = tail_log(path, tail)
    if not lines:
        console.print("No log entries yet.", style="dim")
        return
    console.print(f"{path.name} · last {len(lines)} lines", style="cyan")
    console.print("".join(lines), highlight=False, markup=False)


def cli() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    cli()
