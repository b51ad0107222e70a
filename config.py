"""
Central configuration for the tic-tac-toe engine.
Pydantic models give type-safe settings loaded from the environment or a
JSON file.
"""
from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

# Must match tictactoe.strategy.STRATEGIES.
SEARCH_ALGORITHMS = ("negamax_alpha_beta", "negamax", "minimax", "minimax_alpha_beta")
WORKER_BACKENDS = ("thread", "process", "inline")
PLAYER_TAGS = ("X", "O")
COLOR_SCHEMES = ("Light", "Dark")


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == 'true'


class UISettings(BaseModel):
    """Passthrough UI state. The engine stores and forwards it, never reads it."""

    color_scheme: str = Field(default="Light", description="Color scheme tag (Light or Dark)")
    window_width: int = Field(default=800, ge=0, description="Window width in pixels")
    window_height: int = Field(default=600, ge=0, description="Window height in pixels")

    @field_validator('color_scheme', mode='before')
    @classmethod
    def validate_color_scheme(cls, v):
        v = str(v).capitalize()
        if v not in COLOR_SCHEMES:
            raise ValueError(f"color_scheme must be one of {list(COLOR_SCHEMES)}")
        return v


class EngineSettings(BaseModel):
    """Search and background worker settings."""

    search_depth: int = Field(default=9, ge=1, le=25, description="Maximum search depth in plies")
    algorithm: str = Field(default="negamax_alpha_beta", description="Search algorithm used by the worker")
    worker_backend: str = Field(default="thread", description="Background unit: thread, process or inline")
    worker_timeout_seconds: float = Field(default=10.0, ge=0, description="Watchdog window for a search (0 disables)")
    idle_move_seconds: float = Field(default=0.0, ge=0, description="Auto-move for an idle human after N seconds (0 disables)")

    @field_validator('algorithm', mode='before')
    @classmethod
    def validate_algorithm(cls, v):
        v = str(v).lower()
        if v not in SEARCH_ALGORITHMS:
            raise ValueError(f"algorithm must be one of {list(SEARCH_ALGORITHMS)}")
        return v

    @field_validator('worker_backend', mode='before')
    @classmethod
    def validate_backend(cls, v):
        v = str(v).lower()
        if v not in WORKER_BACKENDS:
            raise ValueError(f"worker_backend must be one of {list(WORKER_BACKENDS)}")
        return v


class GameRulesSettings(BaseModel):
    """Game rules and seating."""

    board_size: int = Field(default=3, ge=3, le=5, description="Board side length")
    first_player: str = Field(default="X", description="Player who opens the game")
    human_player: Optional[str] = Field(default="X", description="Human seat; None for AI vs AI")
    allow_undo: bool = Field(default=True, description="Allow undoing moves")

    @field_validator('first_player', mode='before')
    @classmethod
    def validate_first_player(cls, v):
        v = str(v).upper()
        if v not in PLAYER_TAGS:
            raise ValueError("first_player must be X or O")
        return v

    @field_validator('human_player', mode='before')
    @classmethod
    def validate_human_player(cls, v):
        if v is None or str(v).lower() in ("", "none", "ai"):
            return None
        v = str(v).upper()
        if v not in PLAYER_TAGS:
            raise ValueError("human_player must be X, O or none")
        return v


class LoggingSettings(BaseModel):
    """Logging configuration."""

    log_level: str = Field(default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)")

    @field_validator('log_level', mode='before')
    @classmethod
    def validate_log_level(cls, v):
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR']
        v_upper = v.upper() if isinstance(v, str) else str(v).upper()
        if v_upper not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v_upper


class TicTacToeConfig(BaseModel):
    """Main configuration model."""

    ui: UISettings = Field(default_factory=UISettings)
    engine: EngineSettings = Field(default_factory=EngineSettings)
    rules: GameRulesSettings = Field(default_factory=GameRulesSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    # Metadata
    version: str = Field(default="1.0.0", description="Configuration version")
    config_file: Optional[str] = Field(default=None, description="Path to config file")

    @classmethod
    def from_env(cls) -> 'TicTacToeConfig':
        """Create configuration from environment variables."""
        return cls(
            ui=UISettings(
                color_scheme=os.getenv('TICTACTOE_COLOR_SCHEME', 'Light'),
            ),
            engine=EngineSettings(
                search_depth=int(os.getenv('TICTACTOE_DEPTH', '9')),
                algorithm=os.getenv('TICTACTOE_ALGORITHM', 'negamax_alpha_beta'),
                worker_backend=os.getenv('TICTACTOE_WORKER', 'thread'),
                worker_timeout_seconds=float(os.getenv('TICTACTOE_WORKER_TIMEOUT', '10')),
                idle_move_seconds=float(os.getenv('TICTACTOE_IDLE_MOVE', '0')),
            ),
            rules=GameRulesSettings(
                board_size=int(os.getenv('TICTACTOE_BOARD_SIZE', '3')),
                first_player=os.getenv('TICTACTOE_FIRST_PLAYER', 'X'),
                human_player=os.getenv('TICTACTOE_HUMAN', 'X'),
                allow_undo=_env_bool('TICTACTOE_ALLOW_UNDO', 'true'),
            ),
            logging=LoggingSettings(
                log_level=os.getenv('TICTACTOE_LOG_LEVEL', 'INFO'),
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return self.model_dump()

    def save_to_file(self, filepath: str) -> None:
        """Save configuration to JSON file."""
        config_dict = self.to_dict()
        config_dict['config_file'] = filepath

        with open(filepath, 'w') as f:
            json.dump(config_dict, f, indent=2)

    @classmethod
    def load_from_file(cls, filepath: str) -> 'TicTacToeConfig':
        """Load configuration from JSON file."""
        with open(filepath, 'r') as f:
            data = json.load(f)

        return cls(
            ui=UISettings(**data.get('ui', {})),
            engine=EngineSettings(**data.get('engine', {})),
            rules=GameRulesSettings(**data.get('rules', {})),
            logging=LoggingSettings(**data.get('logging', {})),
            version=data.get('version', '1.0.0'),
            config_file=filepath,
        )

    def update_from_dict(self, updates: Dict[str, Any]) -> None:
        """Update configuration from dictionary; values are re-validated."""
        for section, settings in updates.items():
            if hasattr(self, section) and isinstance(settings, dict):
                section_model = getattr(self, section)
                merged = {**section_model.model_dump(), **settings}
                setattr(self, section, type(section_model)(**merged))


# Global configuration instance
_config: Optional[TicTacToeConfig] = None


def get_config() -> TicTacToeConfig:
    """Get or create the global configuration instance."""
    global _config
    if _config is None:
        _config = TicTacToeConfig.from_env()
    return _config


def set_config(config: TicTacToeConfig) -> TicTacToeConfig:
    """Install `config` as the global instance."""
    global _config
    _config = config
    return _config


def load_config_from_file(filepath: str) -> TicTacToeConfig:
    """Load configuration from file and update global instance."""
    return set_config(TicTacToeConfig.load_from_file(filepath))


def reset_config() -> None:
    """Reset the global configuration to defaults."""
    global _config
    _config = None


# Convenience functions for common configuration access
def get_ui_settings() -> UISettings:
    return get_config().ui


def get_engine_settings() -> EngineSettings:
    return get_config().engine


def get_game_rules() -> GameRulesSettings:
    return get_config().rules


def get_logging_settings() -> LoggingSettings:
    return get_config().logging


# Logging level (DEBUG, INFO, WARNING, ERROR)
LOG_LEVEL = os.environ.get("TICTACTOE_LOG_LEVEL", "INFO").upper()


def setup_logging(level: Optional[str] = None) -> None:
    """Configure root logging once, controlled by env var TICTACTOE_LOG_LEVEL."""
    if getattr(setup_logging, "_configured", False):
        return
    lvl: int = getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO)
    logging.basicConfig(
        level=lvl,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    setup_logging._configured = True  # type: ignore[attr-defined]
