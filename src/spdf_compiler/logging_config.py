from __future__ import annotations

import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from loguru import logger

_CONFIGURED = False

# file name -> levels it receives; every level lands in exactly one file
LEVEL_ROUTES: Dict[str, Tuple[str, ...]] = {
    "debug.json": ("TRACE", "DEBUG"),
    "info.json": ("INFO", "SUCCESS"),
    "warning.json": ("WARNING",),
    "error.json": ("ERROR", "CRITICAL"),
}

_JSON_LINES = dict(serialize=True, rotation="10 MB", retention="30 days", enqueue=True)


def log_dir(now: Optional[datetime] = None) -> Path:
    """Day folder under $SPDF_LOG_DIR (default `logs`), named in UTC."""
    now = now or datetime.now(timezone.utc)
    return Path(os.getenv("SPDF_LOG_DIR", "logs")) / now.strftime("%Y-%m-%d")


def file_sinks(day_dir: Path) -> List[Dict[str, Any]]:
    """Keyword arguments for one `logger.add` call per JSON file."""
    sinks = []
    for name, levels in LEVEL_ROUTES.items():
        sinks.append(
            {
                "sink": day_dir / name,
                "level": levels[0],
                "filter": lambda record, levels=levels: record["level"].name in levels,
                **_JSON_LINES,
            }
        )
    return sinks


def configure_logging(
    service: str = "spdf-compiler",
    version: str = os.getenv("SPDF_VERSION", "0.1.0"),
    environment: str = os.getenv("SPDF_ENV", "dev"),
) -> None:
    """
    Configure Loguru sinks, once per process:
      • <day>/debug.json   (solver, safety and liveness steps)
      • <day>/info.json    (analysis runs and parameter wiring)
      • <day>/warning.json (rate, safety and liveness violations)
      • <day>/error.json   (failed analyses)
    SPDF_DISABLE_FILE_LOGS=1 keeps everything on stderr.
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    logger.remove()
    if os.getenv("SPDF_DISABLE_FILE_LOGS") == "1":
        logger.add(sys.stderr, level="INFO", colorize=sys.stderr.isatty(), enqueue=False)
    else:
        day_dir = log_dir()
        day_dir.mkdir(parents=True, exist_ok=True)
        for options in file_sinks(day_dir):
            logger.add(**options)
        if sys.stderr.isatty():
            logger.add(sys.stderr, level="WARNING", colorize=True, enqueue=True)

    # "graph" is filled per run by SpdfAnalyzer
    logger.configure(extra={"service": service, "version": version, "env": environment, "graph": None})
    _CONFIGURED = True
