from __future__ import annotations

from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from takedown.constants import STAGES
from takedown.core.config import load_job
from takedown.core.errors import TakedownError
from takedown.log import setup_logging
from takedown.orchestration.orchestrator import execute, plan_directory_map
from takedown.orchestration.utils import pipeline_state
from takedown.storage.directories import default_app_list_path, default_install_root, resolve_paths
from takedown.storage.progress import ProgressStore

console = Console()

_job_arg = click.argument("job_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="INFO",
    show_default=True,
)
@click.option("-v", "--verbose", is_flag=True, help="Shortcut for --log-level DEBUG")
@click.pass_context
def cli(ctx: click.Context, log_level: str, verbose: bool) -> None:
    """takedown — resumable access-log extraction and usage reporting."""
    setup_logging("DEBUG" if verbose else log_level.upper())
    ctx.ensure_object(dict)
    ctx.obj["install_root"] = default_install_root()


def _app_list_path(ctx: click.Context, app_list: Path | None) -> Path:
    return app_list or default_app_list_path(ctx.obj["install_root"])


@cli.command("run")
@_job_arg
@click.option(
    "--app-list",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Application list YAML (defaults to the packaged list)",
)
@click.pass_context
def run_cmd(ctx: click.Context, job_file: Path, app_list: Path | None) -> None:
    """Run or resume the pipeline described by JOB_FILE."""
    try:
        out = execute(job_file, app_list_file=_app_list_path(ctx, app_list))
    except TakedownError as e:
        raise click.ClickException(str(e)) from e

    table = Table(title=f"stages • {out.paths.output_dir}")
    table.add_column("stage")
    table.add_column("result")
    table.add_column("elapsed", justify="right")
    for stage in STAGES:
        if stage in out.executed:
            table.add_row(stage, "[green]ran[/]", f"{out.elapsed[stage]:.1f}s")
        else:
            table.add_row(stage, "[yellow]skipped[/]", "-")
    console.print(table)
    console.print(f"[bold]report[/]: {out.report_file}")


@cli.command("status")
@_job_arg
@click.pass_context
def status_cmd(ctx: click.Context, job_file: Path) -> None:
    """Show stage flags for JOB_FILE without touching anything."""
    try:
        job = load_job(job_file)
        paths = resolve_paths(job, _app_list_path(ctx, None))
        record = ProgressStore(paths.progress_file).peek()
    except TakedownError as e:
        raise click.ClickException(str(e)) from e

    table = Table(title=f"ticket {job.ticket}")
    table.add_column("stage")
    table.add_column("complete")
    for stage in STAGES:
        table.add_row(stage, "yes" if record.is_done(stage) else "no")
    console.print(table)
    console.print(f"[bold]state[/]: {pipeline_state(record)}")


@cli.command("dirs")
@_job_arg
@click.pass_context
def dirs_cmd(ctx: click.Context, job_file: Path) -> None:
    """Show which log directories map to which extracted-log files."""
    try:
        job = load_job(job_file)
        paths = resolve_paths(job, _app_list_path(ctx, None))
        directory_map = plan_directory_map(job, paths)
    except TakedownError as e:
        raise click.ClickException(str(e)) from e

    console.print(f"[bold]{len(directory_map)} log directories[/]")
    for input_dir, output_file in directory_map.items():
        console.print(f"{escape(str(input_dir))} -> {escape(output_file.name)}", soft_wrap=True, highlight=False)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
