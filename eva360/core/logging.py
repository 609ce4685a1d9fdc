# eva360/core/logging.py
from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any

from eva360.core.config import Settings

LOG_FORMAT = "[%(asctime)s] %(levelname)-5s %(name)s: %(message)s"
SENSITIVE_KEYS = ("password", "token_sesion", "token", "authorization")
REDACTED = "[REDACTED]"


def configure_logging(settings: Settings) -> None:
    """Configura el logger raíz: stdout y, si hay LOG_DIR, también <LOG_DIR>/app.log."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    formatter = logging.Formatter(LOG_FORMAT)
    if not any(getattr(h, "_eva360", False) for h in root.handlers):
        stream = logging.StreamHandler(stream=sys.stdout)
        stream.setFormatter(formatter)
        stream._eva360 = True  # type: ignore[attr-defined]
        root.addHandler(stream)

        if settings.LOG_DIR:
            log_dir = Path(settings.LOG_DIR)
            log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_dir / "app.log", encoding="utf-8")
            file_handler.setFormatter(formatter)
            file_handler._eva360 = True  # type: ignore[attr-defined]
            root.addHandler(file_handler)


def sanitize_for_log(obj: Any) -> Any:
    """Reemplaza recursivamente los valores de claves sensibles por [REDACTED]."""
    if isinstance(obj, dict):
        out = {}
        for key, value in obj.items():
            if any(s in str(key).lower() for s in SENSITIVE_KEYS):
                out[key] = REDACTED
            else:
                out[key] = sanitize_for_log(value)
        return out
    if isinstance(obj, (list, tuple)):
        return [sanitize_for_log(v) for v in obj]
    return obj


def fmt(msg: str, meta: dict[str, Any] | None = None) -> str:
    """`msg | {json saneado}`, el formato de línea que usan todos los módulos."""
    if not meta:
        return msg
    return f"{msg} | {json.dumps(sanitize_for_log(meta), default=str, ensure_ascii=False)}"
