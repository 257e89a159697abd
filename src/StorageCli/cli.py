import typer
import logging
from pathlib import Path
from typing import List, NoReturn, Optional
from typing_extensions import Annotated

from Configuration import StorageSettings, load_storage_settings
from FileStorage.base import FileSystem
from FileStorage.errors import StorageError
from FileStorage.registry import get_configured_filesystem
from FileStorage.staging import FileStager
from StorageCli.selfcheck import SelfCheckError, run_selfcheck
from Utils.logging import setup_logging

# Create a Typer app instance
app = typer.Typer(
    name="fs-tool",
    help="Inspect and move files on the local or distributed storage backend.",
    add_completion=False
)

# Get a logger instance for this module
logger = logging.getLogger(__name__)


@app.callback()
def main(
    ctx: typer.Context,
    fs: Annotated[Optional[str], typer.Option(
        "--fs", "-f",
        help="Backend to use: local or hdfs. Overrides the settings file.",
        rich_help_panel="Backend Configuration"
    )] = None,
    config: Annotated[Optional[Path], typer.Option(
        help="YAML storage settings file.",
        exists=True,
        dir_okay=False,
        resolve_path=True,
        rich_help_panel="Backend Configuration"
    )] = None,
    log_dir: Annotated[Optional[Path], typer.Option(
        help="Directory to store log files. Console only when omitted.",
        file_okay=False,
        dir_okay=True,
        writable=True,
        resolve_path=True,
        rich_help_panel="Logging Configuration"
    )] = None,
    log_level: Annotated[str, typer.Option(
        help="Set the logging level (e.g., DEBUG, INFO, WARNING, ERROR, CRITICAL).",
        case_sensitive=False,
        rich_help_panel="Logging Configuration"
    )] = "WARNING"
):
    """Select the backend and configure logging for the command."""
    numeric_log_level = getattr(logging, log_level.upper(), None)
    if not isinstance(numeric_log_level, int):
        typer.echo(f"Warning: Invalid log level '{log_level}'. Defaulting to WARNING.", err=True)
        numeric_log_level = logging.WARNING
    setup_logging(log_dir=str(log_dir) if log_dir else None, log_level=numeric_log_level)

    try:
        settings = load_storage_settings(config) if config else StorageSettings()
        if fs is not None:
            settings = StorageSettings.model_validate({**settings.model_dump(), "backend": fs})
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=2)

    ctx.obj = settings


def _backend(ctx: typer.Context) -> FileSystem:
    return get_configured_filesystem(ctx.obj)


def _fail(e: Exception) -> NoReturn:
    logger.error(f"{e}")
    typer.echo(f"Error: {e}", err=True)
    raise typer.Exit(code=1)


@app.command("ls")
def list_files(
    ctx: typer.Context,
    path: Annotated[str, typer.Argument(help="Directory to list.")],
    recursive: Annotated[bool, typer.Option("--recursive", "-r", help="Descend into subdirectories.")] = False
):
    """List the files under a directory with their sizes."""
    try:
        sizes: List[int] = []
        files = _backend(ctx).list_files(path, sizes, recursive=recursive)
    except StorageError as e:
        _fail(e)
    for file_path, size in zip(files, sizes):
        typer.echo(f"{size}\t{file_path}")


@app.command("dirs")
def list_dirs(
    ctx: typer.Context,
    path: Annotated[str, typer.Argument(help="Directory whose child directories are listed.")]
):
    """List the immediate child directories of a directory."""
    try:
        names = _backend(ctx).list_sub_dirs(path)
    except StorageError as e:
        _fail(e)
    for name in names:
        typer.echo(name)


@app.command()
def mkdir(
    ctx: typer.Context,
    path: Annotated[str, typer.Argument(help="Directory to create, with its parents.")]
):
    """Create a directory and any missing parents."""
    try:
        _backend(ctx).mkdir(path)
    except StorageError as e:
        _fail(e)


@app.command()
def rm(
    ctx: typer.Context,
    path: Annotated[str, typer.Argument(help="File to remove.")]
):
    """Remove a file. Succeeds if it does not exist."""
    try:
        _backend(ctx).remove(path)
    except StorageError as e:
        _fail(e)


@app.command()
def rmdir(
    ctx: typer.Context,
    path: Annotated[str, typer.Argument(help="Directory to remove recursively.")]
):
    """Remove a directory and its contents. Succeeds if it does not exist."""
    try:
        _backend(ctx).remove_dir(path)
    except StorageError as e:
        _fail(e)


@app.command()
def put(
    ctx: typer.Context,
    local_src: Annotated[str, typer.Argument(help="Local file to copy.")],
    dst: Annotated[str, typer.Argument(help="Destination file or existing directory on the backend.")]
):
    """Copy a local file onto the backend."""
    try:
        target = _backend(ctx).copy_from_local(local_src, dst)
    except StorageError as e:
        _fail(e)
    typer.echo(target)


@app.command()
def get(
    ctx: typer.Context,
    src: Annotated[str, typer.Argument(help="File on the backend.")],
    local_dst: Annotated[str, typer.Argument(help="Local destination file or existing directory.")]
):
    """Copy a file from the backend onto the local host."""
    try:
        target = _backend(ctx).copy_to_local(src, local_dst)
    except StorageError as e:
        _fail(e)
    typer.echo(target)


@app.command()
def size(
    ctx: typer.Context,
    path: Annotated[str, typer.Argument(help="File to measure.")]
):
    """Print the size of a file in bytes."""
    try:
        typer.echo(_backend(ctx).get_file_size(path))
    except StorageError as e:
        _fail(e)


@app.command()
def disk(
    ctx: typer.Context,
    path: Annotated[str, typer.Argument(help="Any path on the volume to query.")] = "."
):
    """Print the total and available bytes of the volume containing a path."""
    try:
        info = _backend(ctx).get_disk_info(path)
    except StorageError as e:
        _fail(e)
    typer.echo(f"total: {info.total} B")
    typer.echo(f"avail: {info.avail} B")


@app.command()
def stage(
    ctx: typer.Context,
    dest_dir: Annotated[str, typer.Argument(help="Backend directory to stage into.")],
    sources: Annotated[List[Path], typer.Argument(
        help="Local files to stage.",
        exists=True,
        dir_okay=False,
        resolve_path=True
    )],
    threads: Annotated[Optional[int], typer.Option(
        help="Concurrent copy workers. Defaults to the settings file value.", min=1
    )] = None,
    continue_on_error: Annotated[bool, typer.Option(
        "--continue-on-error",
        help="Keep copying after a failure. Also enabled by the settings file."
    )] = False
):
    """Copy local source files into a backend directory ahead of an import."""
    settings: StorageSettings = ctx.obj
    stager = FileStager(
        _backend(ctx),
        threads=threads if threads is not None else settings.threads,
        continue_on_error=continue_on_error or settings.continue_on_error
    )
    try:
        result = stager.stage_files([str(s) for s in sources], dest_dir)
    except (StorageError, ValueError) as e:
        _fail(e)

    for target in result.copied:
        typer.echo(target)
    for failure in result.failures:
        typer.echo(f"FAILED {failure.source}: {failure.error}", err=True)
    for source in result.skipped:
        typer.echo(f"SKIPPED {source}", err=True)
    if not result.succeeded:
        raise typer.Exit(code=1)


@app.command()
def selfcheck(
    ctx: typer.Context,
    work_dir: Annotated[str, typer.Option(
        help="Scratch directory on the backend. Removed before and after the check."
    )] = "fs_selfcheck"
):
    """Run an end-to-end check of the selected backend."""
    try:
        run_selfcheck(_backend(ctx), work_dir)
    except (StorageError, SelfCheckError) as e:
        _fail(e)
    typer.echo(f"{ctx.obj.backend} check passed")


if __name__ == "__main__":
    app()
