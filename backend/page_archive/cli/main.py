"""CLI entrypoint for Page Archive."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional

import requests
import typer

app = typer.Typer(name="pga", help="Page Archive command-line interface")

DEFAULT_HOST = "http://127.0.0.1:5183"


def _resolve_host(override: Optional[str]) -> str:
    if override:
        return override.rstrip("/")
    env_host = os.environ.get("PGA_HOST")
    if env_host:
        return env_host.rstrip("/")
    return DEFAULT_HOST


def _request(method: str, path: str, host: Optional[str] = None, **kwargs) -> requests.Response:
    base = _resolve_host(host)
    url = f"{base}{path}"
    resp = requests.request(method, url, timeout=60, **kwargs)
    if not resp.ok:
        try:
            detail = resp.json()
        except ValueError:
            detail = resp.text
        typer.echo(f"Request failed ({resp.status_code}): {detail}", err=True)
        raise typer.Exit(code=1)
    return resp


def _echo(resp: requests.Response) -> None:
    typer.echo(json.dumps(resp.json(), indent=2, ensure_ascii=False))


@app.command()
def status(
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Show whether the engine is ready."""
    _echo(_request("GET", "/status", host=host))


@app.command()
def search(
    q: str = typer.Argument(..., help="FTS5 match expression"),
    limit: Optional[int] = typer.Option(None, "--limit", min=1, help="Page size"),
    offset: int = typer.Option(0, "--offset", min=0, help="Rows to skip"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Search indexed pages."""
    params: dict[str, object] = {"q": q, "offset": offset}
    if limit is not None:
        params["limit"] = limit
    _echo(_request("GET", "/search", host=host, params=params))


@app.command()
def index(
    url: str = typer.Argument(..., help="Page URL"),
    title: Optional[str] = typer.Option(None, "--title", help="Page title"),
    excerpt: Optional[str] = typer.Option(None, "--excerpt", help="Short page summary"),
    file: Optional[Path] = typer.Option(None, "--file", help="Read page markdown from this file"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Index a page by hand."""
    page: dict[str, object] = {"title": title, "excerpt": excerpt}
    if file is not None:
        page["md_content"] = file.expanduser().read_text(encoding="utf-8")
    _echo(_request("POST", "/pages", host=host, json={"url": url, "page": page}))


@app.command()
def find(
    url: str = typer.Argument(..., help="Exact page URL"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Show the stored document for a URL."""
    _echo(_request("GET", "/documents", host=host, params={"url": url}))


@app.command()
def parity(
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Compare the fragment table with the full-text index."""
    _echo(_request("GET", "/index/parity", host=host))


if __name__ == "__main__":
    app()
