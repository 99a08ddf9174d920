from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

from core.config import BACKEND_DIR


LOG_FILE_NAME = "lesson_grid.log"

# Placement rejections and link changes are logged here at INFO in every environment.
_DOMAIN_LOGGERS = ("services.placement", "services.group_linking", "api.routes.schedule_cells")


def setup_logging(*, environment: str, log_dir: Path | None = None) -> None:
    """Console logging everywhere; production also writes `logs/lesson_grid.log`.

    Does nothing if the root logger already has handlers (uvicorn reload, tests).
    """

    root = logging.getLogger()
    if root.handlers:
        return

    env = (environment or "development").lower().strip()
    is_production = env == "production"
    level = logging.INFO if is_production else logging.DEBUG

    formatter = logging.Formatter(
        fmt="%(asctime)s %(levelname)-7s [%(name)s] %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    handlers: list[logging.Handler] = [console]

    if is_production:
        target = Path(log_dir) if log_dir is not None else Path(BACKEND_DIR) / "logs"
        target.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            target / LOG_FILE_NAME,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    logging.basicConfig(level=level, handlers=handlers)

    for name in _DOMAIN_LOGGERS:
        logging.getLogger(name).setLevel(logging.INFO if is_production else logging.DEBUG)

    # SQL echo is far too chatty at DEBUG.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING if is_production else level)
