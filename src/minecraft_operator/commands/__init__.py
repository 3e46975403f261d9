"""
A Kubernetes operator that runs Minecraft servers declared as `Minecraft` custom resources.
"""

from enum import Enum
import sys
from typing import Any
from loguru import logger
from typer import Option, Typer


def new_typer(**kwargs: Any) -> Typer:
    return Typer(no_args_is_help=True, pretty_exceptions_enable=False, **kwargs)


app = new_typer(help=__doc__)


from . import crds  # noqa: F401,E402
from . import run  # noqa: F401,E402


class LogLevel(str, Enum):
    TRACE = "trace"
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


@app.callback()
def _callback(
    log_level: LogLevel = Option(LogLevel.INFO, "--log-level", "-l", envvar="LOG_LEVEL", help="The log level to use."),
) -> None:
    logger.remove()
    logger.add(sys.stderr, level=log_level.name)


def main() -> None:
    app()
