"""Command line interface for sealstream."""

from __future__ import annotations

import getpass
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator

import click
from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TaskProgressColumn,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)
from rich.table import Table

from sealstream import __version__
from sealstream.container import (
    check_container,
    decrypt_file,
    default_decrypt_output,
    default_encrypt_output,
    encrypt_file,
)
from sealstream.container.format import MAX_CHUNK_SIZE, PBKDF2_ITERATIONS
from sealstream.container.stream import ProgressCallback
from sealstream.errors import AuthFailure, ContainerFormatError, FrameTooLarge, HeaderTruncated, TruncatedFrame
from sealstream.logging_config import configure_logging
from sealstream.server import DEFAULT_HOST, DEFAULT_PORT, run_server

EXIT_SUCCESS = 0
EXIT_USAGE = 1
EXIT_CRYPTO = 2
EXIT_FS = 3
EXIT_CORRUPT = 4

console = Console()


def _prompt_password(password_opt: str | None) -> str:
    if password_opt is not None:
        return password_opt
    return getpass.getpass("Password: ")


def _human_size(num: float) -> str:
    for unit in ("B", "KB", "MB", "GB", "TB"):
        if num < 1024 or unit == "TB":
            return f"{num:.1f} {unit}" if unit != "B" else f"{int(num)} {unit}"
        num /= 1024
    return f"{num:.1f} TB"


def _corruption_message(exc: ContainerFormatError) -> str:
    if isinstance(exc, HeaderTruncated):
        return "[red]Error: container is truncated (incomplete header)[/red]"
    if isinstance(exc, FrameTooLarge):
        return f"[red]Error: container is corrupted ({exc})[/red]"
    if isinstance(exc, TruncatedFrame):
        return "[red]Error: container is truncated (incomplete chunk)[/red]"
    return "[red]Error: container is corrupted or not supported[/red]"


def _handle_action(action: Callable[[], None]) -> int:
    try:
        action()
    except AuthFailure:
        console.print("[red]Invalid password or corrupted data[/red]")
        return EXIT_CRYPTO
    except ContainerFormatError as exc:
        console.print(_corruption_message(exc))
        return EXIT_CORRUPT
    except FileExistsError as exc:
        console.print(f"[red]{exc}. Use --overwrite to replace.[/red]")
        return EXIT_FS
    except FileNotFoundError as exc:
        console.print(f"[red]File not found:[/red] {exc}")
        return EXIT_FS
    except PermissionError as exc:
        console.print(f"[red]Permission denied:[/red] {exc}")
        return EXIT_FS
    except OSError as exc:  # noqa: BLE001
        console.print(f"[red]Filesystem error:[/red] {exc}")
        return EXIT_FS
    except Exception as exc:  # noqa: BLE001
        console.print(f"[red]Unexpected error:[/red] {exc}")
        return EXIT_USAGE
    return EXIT_SUCCESS


@contextmanager
def _progress_bar(description: str, enabled: bool) -> Iterator[ProgressCallback | None]:
    if not enabled:
        yield None
        return

    columns = (
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        DownloadColumn(),
        TransferSpeedColumn(),
        TimeRemainingColumn(),
    )
    with Progress(*columns, console=console, transient=True) as progress:
        task = progress.add_task(description, total=None)

        def _update(processed: int, total: int) -> None:
            # A zero total means the size is unknown: no percentage.
            progress.update(task, completed=processed, total=total or None)

        yield _update


def _password_or_exit(ctx: click.Context, password_opt: str | None) -> str:
    password = _prompt_password(password_opt)
    if not password:
        console.print("[red]Password must not be empty.[/red]")
        ctx.exit(EXIT_USAGE)
    return password


@click.group(
    context_settings={"help_option_names": ["-h", "--help"]},
    invoke_without_command=False,
)
@click.version_option(version=__version__, prog_name="sealstream")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """Password-based streaming file encryption (AES-256-GCM, 64 KiB chunks)."""
    configure_logging(logging.DEBUG if verbose else logging.WARNING)


@cli.command(
    help="Encrypt a file into a chunked container.",
    epilog="Examples:\n  sealstream encrypt report.pdf\n  sealstream encrypt report.pdf backup/report.enc --password pw",
)
@click.argument("input_path", type=click.Path(path_type=Path))
@click.argument("output_path", required=False, type=click.Path(path_type=Path))
@click.option("--password", "password_opt", help="Encryption password (will prompt if omitted).")
@click.option(
    "--overwrite/--no-overwrite",
    default=False,
    help="Overwrite output if it already exists.",
)
@click.option("--progress/--no-progress", "show_progress", default=True, help="Show a progress bar.")
@click.pass_context
def encrypt(
    ctx: click.Context,
    input_path: Path,
    output_path: Path | None,
    password_opt: str | None,
    overwrite: bool,
    show_progress: bool,
) -> None:
    password = _password_or_exit(ctx, password_opt)
    target = output_path or default_encrypt_output(input_path)

    def _run() -> None:
        with _progress_bar(f"Encrypting {input_path.name}", show_progress) as on_progress:
            encrypt_file(input_path, target, password, overwrite=overwrite, on_progress=on_progress)

    code = _handle_action(_run)
    if code == EXIT_SUCCESS:
        size = target.stat().st_size if target.exists() else 0
        console.print(f"[green]Encrypted to[/green] {target} (~{_human_size(size)}).")
    ctx.exit(code)


@cli.command(
    help="Decrypt a container back into the original file.",
    epilog="Examples:\n  sealstream decrypt report.pdf.enc\n  sealstream decrypt report.enc restored.pdf --overwrite",
)
@click.argument("input_path", type=click.Path(path_type=Path))
@click.argument("output_path", required=False, type=click.Path(path_type=Path))
@click.option("--password", "password_opt", help="Decryption password (will prompt if omitted).")
@click.option(
    "--overwrite/--no-overwrite",
    default=False,
    help="Overwrite output if it already exists.",
)
@click.option("--progress/--no-progress", "show_progress", default=True, help="Show a progress bar.")
@click.pass_context
def decrypt(
    ctx: click.Context,
    input_path: Path,
    output_path: Path | None,
    password_opt: str | None,
    overwrite: bool,
    show_progress: bool,
) -> None:
    password = _password_or_exit(ctx, password_opt)
    target = output_path or default_decrypt_output(input_path)

    def _run() -> None:
        with _progress_bar(f"Decrypting {input_path.name}", show_progress) as on_progress:
            decrypt_file(input_path, target, password, overwrite=overwrite, on_progress=on_progress)

    code = _handle_action(_run)
    if code == EXIT_SUCCESS:
        console.print(f"[green]Decrypted to[/green] {target}.")
    ctx.exit(code)


@cli.command(
    help="Display container header and chunk layout without decrypting.",
    epilog="Example:\n  sealstream info report.pdf.enc --frames",
)
@click.argument("container", type=click.Path(path_type=Path))
@click.option("--frames/--no-frames", "show_frames", default=False, help="List every chunk frame.")
@click.pass_context
def info(ctx: click.Context, container: Path, show_frames: bool) -> None:
    def _run() -> None:
        overview, _verified = check_container(container)
        table = Table(show_header=False, box=None)
        table.add_row("Salt", overview.header.salt.hex())
        table.add_row("Base nonce", overview.header.base_nonce.hex())
        table.add_row("KDF", f"PBKDF2-HMAC-SHA256, {PBKDF2_ITERATIONS} iterations")
        table.add_row("Cipher", f"AES-256-GCM, {_human_size(MAX_CHUNK_SIZE)} chunks")
        table.add_row("Chunks", str(overview.frame_count))
        table.add_row("Plaintext size", f"{_human_size(overview.plaintext_len)} ({overview.plaintext_len} B)")
        table.add_row("Container size", f"{_human_size(overview.file_size)} ({overview.file_size} B)")

        console.print("[bold]sealstream container[/bold]")
        console.print(table)

        if show_frames:
            frames = Table("#", "Offset", "Sealed", "Plaintext")
            for frame in overview.frames:
                frames.add_row(
                    str(frame.index), str(frame.offset), str(frame.sealed_len), str(frame.plaintext_len)
                )
            console.print(frames)

    ctx.exit(_handle_action(_run))


@cli.command(
    help="Authenticate every chunk of a container without writing plaintext.",
    epilog="Example:\n  sealstream check report.pdf.enc --password pw",
)
@click.argument("container", type=click.Path(path_type=Path))
@click.option("--password", "password_opt", help="Password for integrity verification (prompts if omitted).")
@click.pass_context
def check(ctx: click.Context, container: Path, password_opt: str | None) -> None:
    password = _password_or_exit(ctx, password_opt)

    def _run() -> None:
        overview, verified = check_container(container, password=password)
        console.print(
            f"[green]Integrity verified for {verified} chunk(s), "
            f"{_human_size(overview.plaintext_len)} of plaintext.[/green]"
        )

    ctx.exit(_handle_action(_run))


@cli.command(help="Serve the encrypt/decrypt web form over HTTP.")
@click.option("--host", default=DEFAULT_HOST, show_default=True, envvar="SEALSTREAM_HOST")
@click.option("--port", default=DEFAULT_PORT, show_default=True, type=int, envvar="SEALSTREAM_PORT")
def serve(host: str, port: int) -> None:
    console.print(f"Server listening on {host}:{port}...")
    run_server(host, port)


@cli.command(name="version", help="Print the installed version.")
def version_cmd() -> None:
    console.print(f"sealstream {__version__}")


def main(argv: list[str] | None = None) -> int:
    try:
        return cli.main(args=argv, prog_name="sealstream", standalone_mode=False)
    except SystemExit as exc:  # noqa: TRY003
        code = exc.code if isinstance(exc.code, int) else EXIT_USAGE
        return code


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
