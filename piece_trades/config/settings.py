# piece_trades/config/settings.py
"""
Configuration settings for the piece-trades annotator, powered by Pydantic.

This module centralizes all tunable parameters and default values. The scoring
weights default to the exact values the classification contract is built on;
changing them changes every tag the annotator emits, so they are validated on
load. Settings can be overridden through environment variables.
"""
from typing import Dict

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Nested Models for Configuration Schemas ---

class ScoringSettingsModel(BaseModel):
    """
    Weights and thresholds for the minor-piece feature scorer.

    Each rule of the scoring chain reads its own fields; the final tag is
    derived from the accumulated score using the two tag bounds.
    """
    loose_penalty: int = Field(4, description="Subtracted when attackers outnumber defenders.")
    tension_penalty: int = Field(1, description="Subtracted when the piece is attacked at all.")
    no_pressure_bonus: int = Field(1, description="Added when the piece is not attacked.")
    stability_bonus: int = Field(2, description="Added when defended at least once and attacked at most once.")

    bad_bishop_pawn_count: int = Field(5, description="Own pawns on the bishop's square colour at or above this make it a bad bishop.")
    bad_bishop_penalty: int = Field(2, description="Subtracted for a bad bishop.")
    bishop_scope_bonus: int = Field(1, description="Added for a bishop that is not bad.")

    rim_knight_penalty: int = Field(2, description="Subtracted for a knight on the board edge.")
    central_knight_bonus: int = Field(1, description="Added for a knight away from the edge.")

    high_mobility_threshold: int = Field(6, description="Mobility at or above this counts as active.")
    low_mobility_threshold: int = Field(3, description="Mobility below this counts as cramped.")
    high_mobility_bonus: int = Field(2, description="Added for an active piece.")
    low_mobility_penalty: int = Field(1, description="Subtracted for a cramped piece.")

    high_tag_min_score: int = Field(2, description="Scores at or above this are tagged 'high' (keep).")
    low_tag_max_score: int = Field(-2, description="Scores at or below this are tagged 'low' (trade candidate).")

    @model_validator(mode='after')
    def validate_bounds_are_ordered(self) -> 'ScoringSettingsModel':
        """Ensures the tag bounds and mobility thresholds cannot overlap."""
        if self.low_tag_max_score >= self.high_tag_min_score:
            raise ValueError("Configuration error: low_tag_max_score must be below high_tag_min_score.")
        if self.low_mobility_threshold > self.high_mobility_threshold:
            raise ValueError("Configuration error: mobility thresholds must be sorted.")
        return self

class AnnotationSettings(BaseModel):
    """Groups all settings related to a single annotation run."""
    start_ply: int = Field(10, ge=1, description="First ply (1-based) at which pieces are scored and annotations emitted.")
    header_overrides: Dict[str, str] = Field(default_factory=dict, description="Header values to set on the output record, replacing or appending.")
    fallback_highlight: str = Field("[%csl Ye4]", description="Highlight directive inserted when a run produced none.")
    diagnostic_clip_chars: int = Field(800, description="How much of an unparsable input is quoted in the fallback record.")
    log_clip_chars: int = Field(2000, description="Maximum characters of input/output text written to debug logs.")

    scoring: ScoringSettingsModel = Field(default_factory=ScoringSettingsModel)

# --- Main Application Settings Class ---

class Settings(BaseSettings):
    """
    Main configuration class for the annotator.

    It loads settings from environment variables with the prefix 'PIECE_TRADES_'.
    Nested models can be configured using a double underscore delimiter, e.g.,
    `PIECE_TRADES_ANNOTATION__START_PLY=12`.
    """
    model_config = SettingsConfigDict(env_prefix='PIECE_TRADES_', env_nested_delimiter='__')

    annotation: AnnotationSettings = Field(default_factory=AnnotationSettings)
    default_log_level: str = "INFO"

# A singleton instance of the settings, accessible throughout the application.
settings = Settings()
