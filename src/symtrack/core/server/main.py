"""symtrack server entry point — ``python -m symtrack.core.server.main``."""

from __future__ import annotations

import logging
from ipaddress import ip_address

from symtrack.core.config.settings import get_settings
from symtrack.core.server.app import create_app


def _is_loopback_host(host: str) -> bool:
    if host == "localhost":
        return True
    try:
        return ip_address(host).is_loopback
    except ValueError:
        return False


def run() -> None:
    """Start the symtrack MCP server with Streamable HTTP transport."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.symtrack_log_level.upper(), logging.INFO)
    )

    logger = logging.getLogger(__name__)
    if not settings.symtrack_allow_insecure_bind and not _is_loopback_host(settings.symtrack_host):
        raise RuntimeError(
            "Refusing to bind symtrack to a non-loopback host without an auth layer. "
            "Set SYMTRACK_ALLOW_INSECURE_BIND=true to override (unsafe)."
        )
    logger.info(
        "Starting symtrack server on %s:%d",
        settings.symtrack_host,
        settings.symtrack_port,
    )

    mcp = create_app()
    mcp.run(
        transport="streamable-http",
        host=settings.symtrack_host,
        port=settings.symtrack_port,
    )


if __name__ == "__main__":
    run()
