"""Command-line interface for oidcore.

Example:
    >>> # From terminal:
    >>> # oidcore --version
    >>> # oidcore hash-secret secret
    >>> # oidcore decode-token eyJhbGciOi...
    >>> # oidcore serve --factory myapp.provider:build --port 5000
    >>> # oidcore purge-expired --db oidcore_tokens.db
"""

import asyncio
import importlib
import json
import time
from pathlib import Path
from typing import Annotated, Any

import typer
from fastapi import FastAPI
from joserfc.errors import JoseError
from joserfc.jws import extract_compact

from oidcore import __version__
from oidcore.observability import configure_logging
from oidcore.provider import Provider
from oidcore.stores.sqlite import DEFAULT_DB_PATH, SQLiteTokenStore
from oidcore.utils.hashing import hash_secret

app = typer.Typer(help="oidcore OAuth2/OIDC provider CLI.")

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 5000


def _version_callback(value: bool) -> None:
    """Print the version and exit when requested."""
    if value:
        typer.echo(__version__)
        raise typer.Exit()


VERSION_OPTION = typer.Option(
    False,
    "--version",
    help="Show oidcore version and exit.",
    callback=_version_callback,
    is_eager=True,
)


@app.callback()
def cli(version: bool = VERSION_OPTION) -> None:
    """oidcore CLI entrypoint."""


@app.command("hash-secret")
def hash_secret_command(plaintext: str) -> None:
    """Print the stored (hashed) form of a client or resource secret."""
    if not plaintext:
        raise typer.BadParameter("Secret must not be empty")
    typer.echo(hash_secret(plaintext))


@app.command("decode-token")
def decode_token(token: str) -> None:
    """Print the header and payload of a JWT without verifying it."""
    try:
        compact = extract_compact(token.strip().encode("ascii"))
        payload = json.loads(compact.payload)
    except (JoseError, ValueError, UnicodeError) as exc:
        raise typer.BadParameter(f"Not a compact JWT: {exc}") from exc
    typer.echo(json.dumps({"header": compact.protected, "payload": payload}, indent=2))


def _load_factory(spec: str) -> Any:
    module_name, _, attribute = spec.partition(":")
    if not module_name or not attribute:
        raise typer.BadParameter("Factory must look like 'package.module:callable'")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise typer.BadParameter(f"Cannot import {module_name}: {exc}") from exc
    factory = getattr(module, attribute, None)
    if not callable(factory):
        raise typer.BadParameter(f"{spec} is not callable")
    return factory


def build_app_from_factory(spec: str) -> FastAPI:
    """Call the factory named by ``spec``; it may return a FastAPI app or a Provider."""
    from oidcore.transport.server import create_app

    built = _load_factory(spec)()
    if isinstance(built, Provider):
        return create_app(built)
    if isinstance(built, FastAPI):
        return built
    raise typer.BadParameter(f"{spec} returned {type(built).__name__}, expected Provider or FastAPI")


@app.command("serve")
def serve(
    factory: Annotated[
        str,
        typer.Option(..., "--factory", "-f", help="'module:callable' returning a Provider or app."),
    ],
    host: Annotated[str, typer.Option("--host", help="Bind address.")] = DEFAULT_HOST,
    port: Annotated[int, typer.Option("--port", help="Bind port.")] = DEFAULT_PORT,
) -> None:
    """Run the token and introspection endpoints with uvicorn."""
    import uvicorn

    configure_logging()
    uvicorn.run(build_app_from_factory(factory), host=host, port=port)


@app.command("purge-expired")
def purge_expired(
    db: Annotated[
        Path,
        typer.Option("--db", help="SQLite token store path."),
    ] = Path(DEFAULT_DB_PATH),
) -> None:
    """Delete expired records from a SQLite token store."""
    store = SQLiteTokenStore(db_path=db)
    removed = asyncio.run(store.purge_expired(int(time.time())))
    typer.echo(f"Purged {removed} expired token(s)")


def main() -> None:
    """Run the oidcore CLI."""
    app()


if __name__ == "__main__":
    main()
