import logging
import os
from typing import Optional

ROOT_LOGGER_NAME = "menu_allergens"

_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}


def _coerce_level(value: Optional[str]) -> int:
    if isinstance(value, str):
        return _LEVELS.get(value.upper().strip(), logging.INFO)
    return logging.INFO


def _configure_root() -> logging.Logger:
    """Attach handlers to the package logger exactly once.

    LOG_LEVEL (default INFO) sets the threshold; LOG_FILE adds a UTF-8 file
    handler next to the stderr stream.
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if getattr(root, "_menu_allergens_configured", False):
        return root

    root.setLevel(_coerce_level(os.environ.get("LOG_LEVEL")))
    formatter = logging.Formatter(
        fmt="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    stream = logging.StreamHandler()
    stream.setFormatter(formatter)
    root.addHandler(stream)

    log_file = os.environ.get("LOG_FILE")
    if log_file:
        try:
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
        except OSError as exc:
            root.warning("LOG_FILE %s could not be opened (%s); logging to stderr only", log_file, exc.strerror)
        else:
            file_handler.setFormatter(formatter)
            root.addHandler(file_handler)

    root.propagate = False
    root._menu_allergens_configured = True  # type: ignore[attr-defined]
    return root


def get_logger(name: str) -> logging.Logger:
    """Child of the ``menu_allergens`` logger; records reach its handlers by propagation."""
    _configure_root()
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
