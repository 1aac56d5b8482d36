"""Loguru configuration for the eval agent.

Sinks:
- stderr: colorized one-line records in a TTY with EVAL_LOG_FORMAT=console,
  serialized JSON on stdout otherwise.
- <data_dir>/logs/eval_agent.log: rotating JSON audit trail, only when
  EVAL_DATA_DIR is set, so CLI approvals leave a record next to the stores.

Every record carries a ``component``; records logged inside a run also carry
``run_id``, which the console format shows after the component.
"""

import sys
from pathlib import Path

from loguru import logger

from eval_agent.config.settings import settings

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[component]}</cyan>{extra[run_label]} | <level>{message}</level>"
)


def _label_run(record) -> None:
    run_id = record["extra"].get("run_id")
    record["extra"]["run_label"] = f" <{str(run_id)[:8]}>" if run_id else ""


def configure_logging() -> None:
    """
    Configure loguru sinks from settings.

    - Development (TTY + console format): colorized, human-readable
    - Production (non-TTY or json format): JSON records on stdout
    - Optional JSON file sink under data_dir, rotated at 10 MB
    """
    logger.remove()
    logger.configure(extra={"component": "eval_agent"}, patcher=_label_run)

    if sys.stderr.isatty() and settings.log_format.lower() == "console":
        logger.add(sys.stderr, format=CONSOLE_FORMAT, level=settings.log_level, colorize=True)
    else:
        logger.add(
            sys.stdout,
            format="{message}",
            level=settings.log_level,
            serialize=True,
            diagnose=False,
        )

    if settings.data_dir:
        logger.add(
            Path(settings.data_dir) / "logs" / "eval_agent.log",
            level=settings.log_level,
            serialize=True,
            rotation="10 MB",
            retention=5,
            diagnose=False,
        )


def get_logger(component: str, **context):
    """
    Logger bound to a component, plus any extra context (run_id, issue_id).

    Example:
        >>> log = get_logger("pipeline", run_id=run.id)
        >>> log.info("Extracted 12 claims from legal")
    """
    return logger.bind(component=component, **context)


configure_logging()

__all__ = ["logger", "get_logger", "configure_logging"]
