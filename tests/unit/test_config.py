from __future__ import annotations

from pathlib import Path

from billingcore.utils.config import EngineSettings, deep_get, load_settings, save_yaml


def test_missing_config_gives_defaults(tmp_path: Path) -> None:
    assert load_settings(tmp_path / "nope.yaml") == EngineSettings(default_vat_rate=20.0, currency_symbol="£")


def test_billing_section_is_read(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    save_yaml(path, {"billing": {"default_vat_rate": 21, "currency_symbol": "Kč"}})
    settings = load_settings(path)
    assert settings.default_vat_rate == 21.0
    assert settings.currency_symbol == "Kč"


def test_unparseable_rate_falls_back(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("billing:\n  default_vat_rate: lots\n", encoding="utf-8")
    assert load_settings(path).default_vat_rate == 20.0


def test_deep_get() -> None:
    cfg = {"app": {"log_dir": "/tmp/x"}}
    assert deep_get(cfg, ["app", "log_dir"]) == "/tmp/x"
    assert deep_get(cfg, ["app", "missing"], "d") == "d"
    assert deep_get(cfg, ["app", "log_dir", "deeper"]) is None
