import logging
from pathlib import Path

from billingcore.utils import logging_setup


def test_compute_max_lines_env(monkeypatch):
    monkeypatch.setenv("BILLINGCORE_LOG_MAX_LINES", "3000")
    assert logging_setup._compute_max_lines() == 3000
    monkeypatch.setenv("BILLINGCORE_LOG_MAX_LINES", "junk")
    assert logging_setup._compute_max_lines() == 5000


def test_log_event_respects_detail(monkeypatch, caplog):
    root = logging.getLogger()
    caplog.set_level(logging.INFO)
    monkeypatch.setattr(root, "_billingcore_log_detail", False, raising=False)
    logging_setup.log_event(logging.getLogger("billingcore.test"), "detail.test", "msg", big="x" * 1000, small="ok")
    assert "small='ok'" in caplog.text
    # big should be trimmed away when detail disabled
    assert "big=" not in caplog.text


def test_line_capped_handler_keeps_last_lines(tmp_path: Path):
    handler = logging_setup.LineCappedFileHandler(tmp_path / "capped.log", max_lines=20)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger = logging.getLogger("billingcore.test_capped")
    logger.propagate = False
    logger.setLevel(logging.INFO)
    logger.addHandler(handler)
    try:
        for i in range(100):
            logger.info("line %d", i)
    finally:
        logger.removeHandler(handler)
        handler.close()
    lines = (tmp_path / "capped.log").read_text(encoding="utf-8").splitlines()
    assert len(lines) <= 30
    assert lines[-1] == "line 99"
