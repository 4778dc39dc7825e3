# tests/config/test_settings.py
import pytest
from pydantic import ValidationError

from piece_trades.config.settings import AnnotationSettings, Settings


def test_defaults():
    settings = AnnotationSettings()
    assert settings.start_ply == 10
    assert settings.header_overrides == {}
    assert settings.fallback_highlight == "[%csl Ye4]"
    assert settings.scoring.high_tag_min_score == 2
    assert settings.scoring.low_tag_max_score == -2

def test_start_ply_must_be_positive():
    with pytest.raises(ValidationError):
        AnnotationSettings(start_ply=0)

def test_environment_overrides_nested_values(monkeypatch):
    monkeypatch.setenv("PIECE_TRADES_ANNOTATION__START_PLY", "12")
    monkeypatch.setenv("PIECE_TRADES_DEFAULT_LOG_LEVEL", "DEBUG")

    settings = Settings()

    assert settings.annotation.start_ply == 12
    assert settings.default_log_level == "DEBUG"
