"""Run the HTTP API server."""

import typer

from wordlookup.config import settings


def serve(
    host: str | None = typer.Option(None, "--host", help="Bind address (default: HOST)"),
    port: int | None = typer.Option(None, "--port", "-p", help="Port (default: PORT)"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
) -> None:
    """Start the dictionary API server."""
    import uvicorn

    # X-Forwarded-For is resolved by the app against TRUST_PROXY_HOPS, not by uvicorn
    uvicorn.run(
        "wordlookup.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
        proxy_headers=False,
    )
