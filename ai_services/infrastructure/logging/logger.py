import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from ai_services.config.settings import settings


class JsonFormatter(logging.Formatter):
    """每条日志输出为一行 JSON，`extra={"extra": {...}}` 中的字段会合并进来。"""

    def __init__(self, redact_content: bool = False):
        super().__init__()
        self._redact_content = redact_content

    def format(self, record: logging.LogRecord) -> str:
        msg = record.getMessage()
        if self._redact_content:
            msg = (msg or "")[:64]
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "name": record.name,
            "msg": msg,
        }
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload.update(extra)
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logger() -> logging.Logger:
    logger = logging.getLogger("ai_services")
    logger.setLevel(settings.log_level)
    if any(getattr(h, "_ai_services_handler", False) for h in logger.handlers):
        return logger
    log_dir = Path(settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    fh = logging.FileHandler(log_dir / "ai_services.log", encoding="utf-8")
    fh.setLevel(settings.log_level)
    fh.setFormatter(JsonFormatter(redact_content=settings.log_redact_content))
    fh._ai_services_handler = True
    logger.addHandler(fh)
    return logger


logger = setup_logger()
