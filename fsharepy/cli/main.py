"""FShare CLI - Main commands."""
import asyncio
import posixpath
import sys
from pathlib import Path
from typing import AsyncIterator, Dict, List, Optional

import aiofiles
import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, DownloadColumn, TransferSpeedColumn

app = typer.Typer(
    name="fshare",
    help="FShare file-hosting CLI",
    add_completion=False
)
# stdout may carry downloaded bytes
console = Console(stderr=True)

READ_SIZE = 1024 * 1024


def run_async(coro):
    """Run async function."""
    return asyncio.run(coro)


def parse_headers(values: Optional[List[str]]) -> Dict[str, str]:
    """Parse repeated ``-H 'Key: value'`` options."""
    headers: Dict[str, str] = {}
    for value in values or []:
        key, sep, rest = value.partition(':')
        if not sep or not key.strip():
            raise typer.BadParameter(f"Invalid header: {value!r}", param_hint="--header")
        headers[key.strip()] = rest.strip()
    return headers


def make_client(user: Optional[str], password: Optional[str], header: Optional[List[str]]):
    from fsharepy import APIConfig, Credential, FShareClient

    headers = parse_headers(header)
    credential = Credential(user, password) if user and password else None
    return FShareClient(headers, config=APIConfig.from_env(), credential=credential)


async def ensure_login(client):
    """Login up front so bad credentials fail before any transfer."""
    from fsharepy import FShareException, Unauthenticated

    try:
        result = await client.login()
    except FShareException as e:
        console.print(f"[red]Login failed: {e}[/red]")
        raise typer.Exit(1)
    if isinstance(result, Unauthenticated):
        console.print(f"[red]Login failed: {result.message}[/red]")
        raise typer.Exit(1)
    return result


def make_progress() -> Progress:
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        DownloadColumn(),
        TransferSpeedColumn(),
        console=console
    )


async def read_file(path: Path) -> AsyncIterator[bytes]:
    async with aiofiles.open(path, 'rb') as f:
        while True:
            data = await f.read(READ_SIZE)
            if not data:
                return
            yield data


async def read_stdin() -> AsyncIterator[bytes]:
    loop = asyncio.get_running_loop()
    while True:
        data = await loop.run_in_executor(None, sys.stdin.buffer.read, READ_SIZE)
        if not data:
            return
        yield data


UserOption = typer.Option(None, "--user", "-u", envvar="FSHARE_USER_EMAIL", help="FShare email")
PasswordOption = typer.Option(None, "--password", "-p", envvar="FSHARE_PASSWORD", help="FShare password")
HeaderOption = typer.Option(None, "--header", "-H", help="Extra request header ('Key: value')")
LocationOption = typer.Option(False, "--location", "-L", help="Follow the redirect and transfer the bytes")


@app.callback()
def main():
    """Load settings from a .env file in the working directory."""
    load_dotenv()


@app.command()
def login(
    user: str = UserOption,
    password: str = PasswordOption,
    header: List[str] = HeaderOption,
):
    """Check FShare credentials."""

    async def do_login():
        async with make_client(user, password, header) as client:
            result = await ensure_login(client)
            console.print(f"[green]Logged in as {user}[/green] ({result.code} {result.message})")
            await client.logout()

    run_async(do_login())


@app.command()
def download(
    url: str = typer.Argument(..., help="File URL or id (append ?password=... for protected files)"),
    user: str = UserOption,
    password: str = PasswordOption,
    header: List[str] = HeaderOption,
    location: bool = LocationOption,
    output: Path = typer.Option(None, "--output", "-o", help="Output file path"),
    remote_name: bool = typer.Option(False, "--remote-name", "-O", help="Use the remote file name as output"),
):
    """Download a file from FShare."""
    from fsharepy import FShareException, Redirect, RedirectMode, Unauthenticated

    async def do_download():
        async with make_client(user, password, header) as client:
            await ensure_login(client)

            redirect = RedirectMode.FOLLOW if location else RedirectMode.MANUAL
            try:
                result = await client.download(url, redirect=redirect)

                if isinstance(result, Unauthenticated):
                    console.print(f"[red]Download refused: {result.message}[/red]")
                    raise typer.Exit(1)

                if isinstance(result, Redirect):
                    typer.echo(result.location)
                    return

                async with result as stream:
                    target = output
                    if target is None and remote_name:
                        target = Path(stream.filename)

                    with make_progress() as progress:
                        task = progress.add_task(
                            f"Downloading {stream.filename}",
                            total=stream.content_length
                        )
                        if target is None:
                            async for data in stream.iter_any():
                                sys.stdout.buffer.write(data)
                                progress.update(task, advance=len(data))
                            sys.stdout.buffer.flush()
                        else:
                            async with aiofiles.open(target, 'wb') as f:
                                async for data in stream.iter_any():
                                    await f.write(data)
                                    progress.update(task, advance=len(data))
            except FShareException as e:
                console.print(f"[red]Download failed: {e}[/red]")
                raise typer.Exit(1)

            if target is not None:
                console.print(f"[green]Downloaded:[/green] {target}")

    run_async(do_download())


@app.command()
def upload(
    input: str = typer.Argument(..., help="Local file to upload, or '-' for stdin"),
    dest: str = typer.Argument("/", help="Destination folder path"),
    user: str = UserOption,
    password: str = PasswordOption,
    header: List[str] = HeaderOption,
    location: bool = LocationOption,
    size: Optional[int] = typer.Option(None, "--size", help="Exact input size in bytes (required for stdin)"),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Remote file name (defaults to the input's name)"),
):
    """Upload a file to FShare."""
    from fsharepy import FShareException, Redirect, RedirectMode, Unauthenticated

    if input == "-":
        if size is None:
            console.print("[red]Must provide --size for input from stdin[/red]")
            raise typer.Exit(1)
        name = name or "stdin"
        body = read_stdin()
    else:
        file_path = Path(input)
        if not file_path.is_file():
            console.print(f"[red]Missing input file: {input}[/red]")
            raise typer.Exit(1)
        name = name or file_path.name
        if size is None:
            size = file_path.stat().st_size
        body = read_file(file_path)

    destination = posixpath.join(dest, name)

    async def do_upload():
        async with make_client(user, password, header) as client:
            await ensure_login(client)

            redirect = RedirectMode.FOLLOW if location else RedirectMode.MANUAL
            try:
                with make_progress() as progress:
                    task = progress.add_task(f"Uploading {name}", total=size)
                    result = await client.upload(
                        destination,
                        body,
                        size=size,
                        redirect=redirect,
                        progress_callback=lambda p: progress.update(task, completed=p.transferred_bytes),
                    )
            except FShareException as e:
                console.print(f"[red]Upload failed: {e}[/red]")
                raise typer.Exit(1)

            if isinstance(result, Unauthenticated):
                console.print(f"[red]Upload refused: {result.message}[/red]")
                raise typer.Exit(1)

            if isinstance(result, Redirect):
                typer.echo(result.location)
                return

            if not result.ok:
                console.print("[red]Upload failed[/red]")
                raise typer.Exit(1)
            typer.echo(result.url or result.data)

    run_async(do_upload())


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", "--host", help="Interface to bind"),
    port: int = typer.Option(8080, "--port", envvar="PORT", help="Port to listen on"),
):
    """Run the HTTP download proxy."""
    from aiohttp import web
    from fsharepy import APIConfig
    from fsharepy.server import create_app

    console.print(f"[cyan]Serving on http://{host}:{port}/[/cyan]")
    web.run_app(create_app(APIConfig.from_env()), host=host, port=port, print=None)


if __name__ == "__main__":
    app()
