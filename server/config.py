"""
Settings for the Golf server, the local engine and the client adapter.

Values come from the process environment, then from a ``.env`` file at the
project root, then from the defaults below.

Usage:
    from config import config
    config.PORT                      # 3001
    config.card_values.to_dict()     # {"A": 11, "2": 0, ...}
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)


def get_env(key: str, default: str = "") -> str:
    return os.environ.get(key, default)


def get_env_bool(key: str, default: bool = False) -> bool:
    """Read a yes/no flag; unrecognized values fall back to ``default``."""
    raw = os.environ.get(key, "").strip().lower()
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off"):
        return False
    return default


def get_env_int(key: str, default: int = 0) -> int:
    raw = os.environ.get(key)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def get_env_float(key: str, default: float = 0.0) -> float:
    raw = os.environ.get(key)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


# Rank symbol -> (environment name suffix, default points)
RANK_POINTS: dict[str, tuple[str, int]] = {
    "A": ("ACE", 11),
    "2": ("TWO", 0),
    "3": ("THREE", 3),
    "4": ("FOUR", 4),
    "5": ("FIVE", 5),
    "6": ("SIX", 6),
    "7": ("SEVEN", 7),
    "8": ("EIGHT", 8),
    "9": ("NINE", 9),
    "10": ("TEN", 10),
    "J": ("JACK", 0),
    "Q": ("QUEEN", 10),
    "K": ("KING", 10),
}


@dataclass
class CardValues:
    """
    Points per rank symbol.

    Any rank can be overridden with ``CARD_<NAME>``, e.g. ``CARD_KING=0``.
    """

    points: dict[str, int] = field(
        default_factory=lambda: {rank: points for rank, (_, points) in RANK_POINTS.items()}
    )

    @classmethod
    def from_env(cls) -> "CardValues":
        return cls({
            rank: get_env_int(f"CARD_{name}", points)
            for rank, (name, points) in RANK_POINTS.items()
        })

    def to_dict(self) -> dict[str, int]:
        return dict(self.points)


@dataclass
class GameDefaults:
    """Rules and pacing shared by both engines."""
    game_over_score: int = 100
    initial_peeks: int = 2
    cpu_turn_delay: float = 1.0
    peek_settle_delay: float = 2.0

    @classmethod
    def from_env(cls) -> "GameDefaults":
        return cls(
            game_over_score=get_env_int("GAME_OVER_SCORE", cls.game_over_score),
            initial_peeks=get_env_int("INITIAL_PEEKS", cls.initial_peeks),
            cpu_turn_delay=get_env_float("CPU_TURN_DELAY", cls.cpu_turn_delay),
            peek_settle_delay=get_env_float("PEEK_SETTLE_DELAY", cls.peek_settle_delay),
        )


@dataclass
class ServerConfig:
    HOST: str = "0.0.0.0"
    PORT: int = 3001
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    # Sentry is enabled only when a DSN is set
    SENTRY_DSN: str = ""

    MAX_PLAYERS_PER_ROOM: int = 2

    # Where GolfClient connects by default
    SERVER_URL: str = "ws://localhost:3001/ws"

    card_values: CardValues = field(default_factory=CardValues)
    game_defaults: GameDefaults = field(default_factory=GameDefaults)

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """Build the configuration from the current environment."""
        return cls(
            HOST=get_env("HOST", cls.HOST),
            PORT=get_env_int("PORT", cls.PORT),
            DEBUG=get_env_bool("DEBUG", cls.DEBUG),
            LOG_LEVEL=get_env("LOG_LEVEL", cls.LOG_LEVEL),
            ENVIRONMENT=get_env("ENVIRONMENT", cls.ENVIRONMENT),
            SENTRY_DSN=get_env("SENTRY_DSN", cls.SENTRY_DSN),
            MAX_PLAYERS_PER_ROOM=get_env_int("MAX_PLAYERS_PER_ROOM", cls.MAX_PLAYERS_PER_ROOM),
            SERVER_URL=get_env("SERVER_URL", cls.SERVER_URL),
            card_values=CardValues.from_env(),
            game_defaults=GameDefaults.from_env(),
        )


config = ServerConfig.from_env()


def reload_config() -> ServerConfig:
    """
    Re-read the environment into the module-level ``config`` (tests).

    Only the ``config`` object is rebuilt. constants.py copies its values at
    import time, so engines keep the values that were in force when
    constants was first imported.
    """
    global config
    config = ServerConfig.from_env()
    return config
