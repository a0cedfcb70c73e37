from __future__ import annotations

import json
import logging
import os
import threading
import traceback
from collections import deque
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Dict

from billingcore.utils.forensic_context import get_forensic_fields

_FALSY = {"0", "false", "False", "FALSE", "no", "NO"}
_TRUTHY = {"1", "true", "TRUE", "yes", "YES"}


class LineCappedFileHandler(logging.Handler):
    """
    Single log file with "ring buffer" behavior:
    - appends normally
    - once it grows beyond max_lines (+ small chunk), it truncates to last max_lines
    """

    def __init__(
        self,
        filename: Path,
        *,
        max_lines: int = 5000,
        encoding: str = "utf-8",
    ):
        super().__init__()
        self._filename = Path(filename)
        self._encoding = encoding
        self.max_lines = int(max_lines)
        # trim every N extra lines to avoid rewriting on every emit
        self._trim_chunk = max(10, self.max_lines // 100)
        self._mtx = threading.RLock()
        self._stream = None
        self._line_count = 0
        self._open_and_count()

    def _open_and_count(self) -> None:
        self._filename.parent.mkdir(parents=True, exist_ok=True)
        self._stream = open(self._filename, "a", encoding=self._encoding, errors="backslashreplace")
        try:
            with open(self._filename, "r", encoding=self._encoding, errors="ignore") as rf:
                self._line_count = sum(1 for _ in rf)
        except OSError:
            self._line_count = 0

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            if not msg.endswith("\n"):
                msg += "\n"
            with self._mtx:
                if self._stream is None:
                    self._open_and_count()
                assert self._stream is not None
                self._stream.write(msg)
                self._stream.flush()
                self._line_count += 1
                if self._line_count >= (self.max_lines + self._trim_chunk):
                    self._trim_to_last_max_lines()
        except Exception:
            self.handleError(record)

    def _trim_to_last_max_lines(self) -> None:
        try:
            if self._stream is not None:
                self._stream.close()
                self._stream = None

            tail: deque[str] = deque(maxlen=self.max_lines)
            try:
                with open(self._filename, "r", encoding=self._encoding, errors="ignore") as rf:
                    for line in rf:
                        tail.append(line)
            except FileNotFoundError:
                pass

            with open(self._filename, "w", encoding=self._encoding, errors="backslashreplace") as wf:
                wf.writelines(tail)

            self._line_count = len(tail)
        finally:
            self._stream = open(self._filename, "a", encoding=self._encoding, errors="backslashreplace")

    def close(self) -> None:
        with self._mtx:
            if self._stream is not None:
                self._stream.close()
            self._stream = None
        super().close()


_ROOT_CONFIGURED = False
_ROOT_CONFIG_LOCK = threading.Lock()


class ForensicContextFilter(logging.Filter):
    """Attaches the current forensic context to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            record.forensic = get_forensic_fields()
        except Exception:
            record.forensic = None
        return True


class JsonLineFormatter(logging.Formatter):
    """Serializes a log record as one JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "funcName": record.funcName,
            "line": record.lineno,
            "process": record.process,
            "threadName": record.threadName,
            "event_name": getattr(record, "event_name", None),
        }

        payload["forensic"] = getattr(record, "forensic", None) or get_forensic_fields()

        extra_obj = getattr(record, "extra_payload", None)
        if extra_obj:
            payload["extra"] = extra_obj

        if record.exc_info:
            payload["exception"] = "".join(traceback.format_exception(*record.exc_info))

        return json.dumps(payload, ensure_ascii=False, default=str)


def _compute_max_lines() -> int:
    env_max = os.environ.get("BILLINGCORE_LOG_MAX_LINES")
    if env_max:
        try:
            val = int(env_max)
            if val > 0:
                return val
        except ValueError:
            pass
    return 5000


def setup_logging(log_dir: Path, name: str = "billingcore") -> logging.Logger:
    """
    Configures one shared log file:
      <log_dir>/billingcore.log
    plus <log_dir>/billingcore_forensic.jsonl, both capped to the last
    BILLINGCORE_LOG_MAX_LINES lines.

    Console logging is OFF by default. Enable via:
      BILLINGCORE_LOG_CONSOLE=1
    """
    global _ROOT_CONFIGURED

    log_dir.mkdir(parents=True, exist_ok=True)
    logger = logging.getLogger(name)
    max_lines = _compute_max_lines()
    detail = str(os.environ.get("BILLINGCORE_LOG_DETAIL", "1")).strip() not in _FALSY

    with _ROOT_CONFIG_LOCK:
        if not _ROOT_CONFIGURED:
            root = logging.getLogger()
            root.setLevel(logging.DEBUG)

            fmt = logging.Formatter(
                "%(asctime)s.%(msecs)03d %(levelname)s [%(name)s:%(funcName)s:%(lineno)d] %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
            forensic_filter = ForensicContextFilter()

            fh = LineCappedFileHandler(log_dir / "billingcore.log", max_lines=max_lines)
            fh.setLevel(logging.DEBUG)
            fh.setFormatter(fmt)
            fh.addFilter(forensic_filter)
            root.addHandler(fh)

            fh_json = LineCappedFileHandler(log_dir / "billingcore_forensic.jsonl", max_lines=max_lines)
            fh_json.setLevel(logging.DEBUG)
            fh_json.setFormatter(JsonLineFormatter())
            fh_json.addFilter(forensic_filter)
            root.addHandler(fh_json)

            if os.environ.get("BILLINGCORE_LOG_CONSOLE", "").strip() in _TRUTHY:
                ch = logging.StreamHandler()
                ch.setLevel(logging.INFO)
                ch.setFormatter(fmt)
                root.addHandler(ch)

            setattr(root, "_billingcore_log_detail", detail)
            _ROOT_CONFIGURED = True

    logger.setLevel(logging.DEBUG)
    logger.propagate = True
    logger.info(
        "Logging initialized: log_dir=%s pid=%s max_lines=%s detail=%s",
        log_dir,
        os.getpid(),
        max_lines,
        int(detail),
        extra={"event_name": "logging.start", "extra_payload": {"max_lines": max_lines, "detail": int(detail)}},
    )
    return logger


def log_event(logger: logging.Logger, event_name: str, message: str, **extra: Any) -> None:
    """
    Structured logging helper:
    - attaches event_name and extra_payload
    - appends a readable key=value suffix to the text message
    """
    extra_payload: Dict[str, Any] = extra or {}
    detail_enabled = bool(getattr(logging.getLogger(), "_billingcore_log_detail", True))

    if not detail_enabled:
        # without detail, drop large values (e.g. whole line-item lists)
        extra_payload = {k: v for k, v in extra_payload.items() if len(repr(v)) <= 400}

    suffix = ""
    if extra_payload:
        suffix = " | " + " ".join(f"{k}={extra_payload[k]!r}" for k in sorted(extra_payload.keys()))
    logger.info(
        f"{message}{suffix}",
        extra={
            "event_name": event_name,
            "extra_payload": extra_payload,
            "forensic": get_forensic_fields(),
        },
    )
