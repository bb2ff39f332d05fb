import logging
import os
import sys
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from enum import Enum
from textwrap import dedent

import click
from dotenv import load_dotenv
from fastmcp import FastMCP

from winreg_converge.registry import (
    Architecture,
    EngineConfig,
    RegistryEngine,
    RegistryError,
    RegistryService,
)
from winreg_converge.tools import _state, register_all_tools
from winreg_converge.tools._helpers import _coerce_bool as _coerce_bool  # noqa: F401 -- re-export

load_dotenv()

logger = logging.getLogger("winreg_converge")


@dataclass
class Config:
    architecture: str = field(default=Architecture.MACHINE.value)
    log_level: str = field(default="INFO")


instructions = dedent("""
winreg-converge provides a tool that converges Windows Registry keys and values
to a declared state and reports whether anything had to change.
""")


def configure_logging(level: str) -> None:
    """Attach a stderr handler to the package logger unless one is configured."""
    logger.setLevel(level.upper())
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
        logger.addHandler(handler)


def build_service(config: Config) -> RegistryService:
    """Create the registry service, validating the architecture eagerly."""
    engine_config = EngineConfig(architecture=Architecture.parse(config.architecture))
    logger.info(
        "Registry view: %s (host %s)", engine_config.architecture, engine_config.host_architecture
    )
    return RegistryService(RegistryEngine(engine_config))


def load_config(architecture: str | None = None) -> Config:
    return Config(
        architecture=architecture
        or os.getenv("WINREG_CONVERGE_ARCHITECTURE", Architecture.MACHINE.value),
        log_level=os.getenv("WINREG_CONVERGE_LOG_LEVEL", "INFO"),
    )


@asynccontextmanager
async def lifespan(app: FastMCP):
    """Runs initialization code before the server starts and cleanup code after it shuts down."""
    if _state.registry is None:
        _state.registry = build_service(load_config())
    yield


mcp = FastMCP(name="winreg-converge", instructions=instructions, lifespan=lifespan)
register_all_tools(mcp)


class Transport(Enum):
    STDIO = "stdio"
    SSE = "sse"
    STREAMABLE_HTTP = "streamable-http"

    def __str__(self):
        return self.value


@click.command()
@click.option(
    "--transport",
    help="The transport layer used by the MCP server.",
    type=click.Choice(
        [Transport.STDIO.value, Transport.SSE.value, Transport.STREAMABLE_HTTP.value]
    ),
    default="stdio",
)
@click.option(
    "--host",
    help="Host to bind the SSE/Streamable HTTP server.",
    default="localhost",
    type=str,
    show_default=True,
)
@click.option(
    "--port",
    help="Port to bind the SSE/Streamable HTTP server.",
    default=8000,
    type=int,
    show_default=True,
)
@click.option(
    "--architecture",
    help="Default registry view. Overrides WINREG_CONVERGE_ARCHITECTURE.",
    type=click.Choice([a.value for a in Architecture]),
    default=None,
)
def main(transport, host, port, architecture):
    config = load_config(architecture)
    configure_logging(config.log_level)

    try:
        _state.registry = build_service(config)
    except (RegistryError, ImportError) as e:
        raise click.ClickException(str(e)) from e

    match transport:
        case Transport.STDIO.value:
            mcp.run(transport=Transport.STDIO.value, show_banner=False)
        case Transport.SSE.value | Transport.STREAMABLE_HTTP.value:
            # No authentication layer: bind to localhost only
            if host != "localhost" and host != "127.0.0.1":
                logger.warning("Refusing to bind to %s without authentication.", host)
                click.echo(
                    f"Error: Cannot bind to {host} without authentication.\n"
                    "Use --host localhost or the stdio transport.",
                    err=True,
                )
                sys.exit(1)
            mcp.run(transport=transport, host=host, port=port, show_banner=False)
        case _:
            raise ValueError(f"Invalid transport: {transport}")


if __name__ == "__main__":
    main()
