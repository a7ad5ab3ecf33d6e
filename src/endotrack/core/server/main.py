"""Command-line entry point for the endotrack server.

Runs over stdio when launched by a desktop MCP client, or over Streamable
HTTP on a loopback address.
"""

from __future__ import annotations

import logging
from ipaddress import ip_address

from endotrack.core.config.settings import Settings, get_settings
from endotrack.core.server.app import create_app

logger = logging.getLogger(__name__)


def _is_loopback_host(host: str) -> bool:
    if host == "localhost":
        return True
    try:
        return ip_address(host).is_loopback
    except ValueError:
        return False


def check_bind(settings: Settings) -> None:
    """Refuse a non-loopback HTTP bind unless explicitly allowed.

    Raises:
        RuntimeError: If the host is not loopback and the override is unset.
    """
    if settings.endo_transport == "stdio" or settings.endo_allow_insecure_bind:
        return
    if not _is_loopback_host(settings.endo_host):
        raise RuntimeError(
            f"Refusing to serve symptom logs on {settings.endo_host!r}: there is no "
            "auth layer. Bind to 127.0.0.1, or set ENDO_ALLOW_INSECURE_BIND=true (unsafe)."
        )


def run() -> None:
    """Start the endotrack MCP server."""
    settings = get_settings()
    logging.basicConfig(level=getattr(logging, settings.endo_log_level.upper(), logging.INFO))
    check_bind(settings)

    mcp = create_app()
    if settings.endo_transport == "stdio":
        logger.info("Starting endotrack over stdio")
        mcp.run(transport="stdio")
        return

    logger.info(
        "Starting endotrack on http://%s:%d (user %s)",
        settings.endo_host,
        settings.endo_port,
        settings.user_id,
    )
    mcp.run(
        transport="streamable-http",
        host=settings.endo_host,
        port=settings.endo_port,
    )


if __name__ == "__main__":
    run()
