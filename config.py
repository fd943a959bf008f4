"""
config.py

Typed configuration loading and validation for Bunny Hop.

Design goals
- Load at most one UTF-8 JSON config file
- Validate with pydantic (defaults included)
- Support environment variable overrides
- No other I/O beyond reading the config file (no directory creation)

Config file location
- If BUNNYHOP_CONFIG_PATH is set, that file is used (it must exist).
- Otherwise these paths are searched in order and the first one that exists is used:
  1) ./bunnyhop_config.json (current working directory)
  2) <user config dir>/BunnyHop/BunnyHop/bunnyhop_config.json
- If none exists, the built-in defaults below are used.

Example config file (bunnyhop_config.json)
{
  "default_difficulty": "medium",
  "game": {
    "stun_ticks": 45
  },
  "difficulties": {
    "hard": {"base_speed": 0.9, "spawn_interval": 40, "hazard_probability": 0.55, "speed_increment": 0.1}
  },
  "audio": {
    "muted": false,
    "master_volume": 0.8
  }
}

Difficulty sections are merged over the defaults tier by tier, so a file only needs to name
the values it changes.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from platformdirs import user_config_dir
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

logger = logging.getLogger(__name__)


class UnknownDifficultyError(KeyError):
    """Raised when a difficulty tier name is not present in the configuration."""


class DifficultyProfile(BaseModel):
    model_config = {"frozen": True}

    name: str = Field(default="easy", description="Tier name shown to the player.")
    base_speed: float = Field(default=0.4, gt=0.0, description="Starting scroll speed in percent of track per tick.")
    spawn_interval: int = Field(default=70, ge=1, description="Ticks between spawn attempts.")
    hazard_probability: float = Field(default=0.2, ge=0.0, le=1.0, description="Chance a spawn is a hazard.")
    speed_increment: float = Field(default=0.02, ge=0.0, description="Speed added every speed_up_every collectibles.")

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        normalized = (value or "").strip().lower()
        if not normalized:
            raise ValueError("difficulty name must not be empty")
        return normalized


def _default_difficulties() -> Dict[str, DifficultyProfile]:
    return {
        "easy": DifficultyProfile(name="easy", base_speed=0.4, spawn_interval=70, hazard_probability=0.2, speed_increment=0.02),
        "medium": DifficultyProfile(name="medium", base_speed=0.6, spawn_interval=60, hazard_probability=0.35, speed_increment=0.05),
        "hard": DifficultyProfile(name="hard", base_speed=0.8, spawn_interval=45, hazard_probability=0.5, speed_increment=0.08),
    }


class GameRules(BaseModel):
    model_config = {"frozen": True}

    lanes: int = Field(default=3, ge=1, description="Number of lanes.")
    max_lives: int = Field(default=3, ge=1)
    start_lane: int = Field(default=1, ge=0)
    player_row: float = Field(default=80.0, description="Vertical position of the player, percent of track.")
    hit_tolerance: float = Field(default=8.0, gt=0.0)
    stun_ticks: int = Field(default=60, ge=1)
    spawn_position: float = Field(default=-20.0, description="Entities start above the visible track.")
    exit_position: float = Field(default=120.0, description="Entities at or beyond this are discarded.")
    spawn_guard_position: float = Field(default=20.0, description="Lane is blocked for spawning while an entity is above this.")
    speed_up_every: int = Field(default=5, ge=1)
    jump_cue_ticks: int = Field(default=12, ge=0)
    game_over_delay_seconds: float = Field(default=0.1, ge=0.0)
    frame_interval_ms: int = Field(default=16, ge=1)
    collect_particle_color: str = Field(default="#fb923c")
    hit_particle_color: str = Field(default="#9ca3af")

    @model_validator(mode="after")
    def validate_start_lane(self) -> "GameRules":
        if self.start_lane >= self.lanes:
            raise ValueError(f"start_lane must be below lanes ({self.lanes})")
        if self.exit_position <= self.player_row:
            raise ValueError("exit_position must be past player_row")
        return self


class AudioConfig(BaseModel):
    muted: bool = Field(default=False, description="Start with all audio muted.")
    sample_rate: int = Field(default=22050, ge=8000, le=192000)
    master_volume: float = Field(default=1.0, ge=0.0, le=1.0)
    menu_bpm: float = Field(default=100.0, gt=0.0)
    playing_bpm: float = Field(default=180.0, gt=0.0)


class AppConfig(BaseModel):
    default_difficulty: str = Field(default="easy")
    game: GameRules = Field(default_factory=GameRules)
    difficulties: Dict[str, DifficultyProfile] = Field(default_factory=_default_difficulties)
    audio: AudioConfig = Field(default_factory=AudioConfig)

    @field_validator("difficulties", mode="before")
    @classmethod
    def merge_difficulties(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        merged: Dict[str, Any] = {name: profile.model_dump() for name, profile in _default_difficulties().items()}
        for raw_name, section in value.items():
            name = str(raw_name).strip().lower()
            base = dict(merged.get(name, {}))
            if isinstance(section, DifficultyProfile):
                section = section.model_dump()
            if isinstance(section, dict):
                base.update(section)
            base["name"] = name
            merged[name] = base
        return merged

    @model_validator(mode="after")
    def validate_default_difficulty(self) -> "AppConfig":
        normalized = (self.default_difficulty or "").strip().lower()
        if normalized not in self.difficulties:
            raise ValueError(f"default_difficulty {self.default_difficulty!r} is not a configured difficulty")
        self.default_difficulty = normalized
        return self

    def difficulty_names(self) -> List[str]:
        return list(self.difficulties.keys())

    def difficulty(self, name: Optional[str] = None) -> DifficultyProfile:
        key = (name if name is not None else self.default_difficulty).strip().lower()
        try:
            return self.difficulties[key]
        except KeyError:
            raise UnknownDifficultyError(key) from None


def _default_config_candidates() -> List[Path]:
    config_directory = Path(user_config_dir("BunnyHop", "BunnyHop"))
    return [
        Path.cwd() / "bunnyhop_config.json",
        config_directory / "bunnyhop_config.json",
    ]


def _resolve_config_path() -> Optional[Path]:
    explicit_path_text = os.environ.get("BUNNYHOP_CONFIG_PATH", "").strip()
    if explicit_path_text:
        return Path(explicit_path_text)

    for candidate_path in _default_config_candidates():
        if candidate_path.exists():
            return candidate_path

    return None


def _read_json_file_utf8(config_path: Path) -> Dict[str, Any]:
    try:
        raw_text = config_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise
    except OSError as exception:
        raise OSError(f"Failed to read config file: {config_path}. Error: {exception}") from exception

    try:
        parsed = json.loads(raw_text)
    except json.JSONDecodeError as exception:
        raise ValueError(f"Config file is not valid JSON: {config_path}. Error: {exception}") from exception

    if not isinstance(parsed, dict):
        raise ValueError(f"Config file root must be a JSON object: {config_path}")

    return parsed


def _apply_environment_overrides(config_dict: Dict[str, Any]) -> Dict[str, Any]:
    """
    Environment overrides are optional. The config file is the primary source of truth.

    Override variables:
    - BUNNYHOP_DIFFICULTY
    - BUNNYHOP_MUTE
    - BUNNYHOP_MASTER_VOLUME
    - BUNNYHOP_STUN_TICKS
    """
    def ensure_nested(config_root: Dict[str, Any], section_name: str) -> Dict[str, Any]:
        section = config_root.get(section_name)
        if isinstance(section, dict):
            return section
        section = {}
        config_root[section_name] = section
        return section

    updated_config = dict(config_dict)

    game_section = ensure_nested(updated_config, "game")
    audio_section = ensure_nested(updated_config, "audio")

    def override_string(env_name: str, target_dict: Dict[str, Any], key_name: str) -> None:
        value_text = os.environ.get(env_name, "")
        if value_text.strip():
            target_dict[key_name] = value_text.strip()

    def override_int(env_name: str, target_dict: Dict[str, Any], key_name: str) -> None:
        value_text = os.environ.get(env_name, "").strip()
        if not value_text:
            return
        try:
            target_dict[key_name] = int(value_text)
        except ValueError:
            logger.warning("Ignoring %s=%r: not an integer", env_name, value_text)

    def override_float(env_name: str, target_dict: Dict[str, Any], key_name: str) -> None:
        value_text = os.environ.get(env_name, "").strip()
        if not value_text:
            return
        try:
            target_dict[key_name] = float(value_text)
        except ValueError:
            logger.warning("Ignoring %s=%r: not a number", env_name, value_text)

    def override_bool(env_name: str, target_dict: Dict[str, Any], key_name: str) -> None:
        value_text = os.environ.get(env_name, "").strip().lower()
        if not value_text:
            return
        truthy = {"1", "true", "yes", "on"}
        falsy = {"0", "false", "no", "off"}
        if value_text in truthy:
            target_dict[key_name] = True
        elif value_text in falsy:
            target_dict[key_name] = False

    override_string("BUNNYHOP_DIFFICULTY", updated_config, "default_difficulty")
    override_bool("BUNNYHOP_MUTE", audio_section, "muted")
    override_float("BUNNYHOP_MASTER_VOLUME", audio_section, "master_volume")
    override_int("BUNNYHOP_STUN_TICKS", game_section, "stun_ticks")

    return updated_config


def load_config(config_path: Optional[Path] = None) -> Tuple[AppConfig, Optional[Path]]:
    resolved_path = config_path if config_path is not None else _resolve_config_path()
    json_dict: Dict[str, Any] = {}
    if resolved_path is not None:
        json_dict = _read_json_file_utf8(resolved_path)
    else:
        logger.info("No config file found, using built-in defaults")
    json_dict = _apply_environment_overrides(json_dict)

    try:
        config = AppConfig.model_validate(json_dict)
    except ValidationError as exception:
        source_text = str(resolved_path) if resolved_path is not None else "built-in defaults"
        raise ValueError(f"Config validation failed for {source_text}:\n{exception}") from exception

    return config, resolved_path


def to_json(config: AppConfig) -> str:
    return json.dumps(config.model_dump(mode="json"), ensure_ascii=False, indent=2)


def _run_unit_tests() -> None:
    config = AppConfig()
    assert config.difficulty().name == "easy"
    assert config.difficulty("HARD").spawn_interval == 45

    merged = AppConfig.model_validate({"difficulties": {"hard": {"base_speed": 1.5}}})
    assert merged.difficulty("hard").base_speed == 1.5
    assert merged.difficulty("hard").spawn_interval == 45
    assert merged.difficulty("easy").spawn_interval == 70

    try:
        config.difficulty("nightmare")
    except UnknownDifficultyError:
        pass
    else:
        raise AssertionError("unknown difficulty must raise")


def main() -> int:
    try:
        config, resolved_path = load_config()
    except Exception as exception:
        error_payload = {"ok": False, "error": str(exception)}
        print(json.dumps(error_payload, ensure_ascii=False, indent=2))
        return 2

    output_payload = {
        "ok": True,
        "config_path": str(resolved_path) if resolved_path is not None else None,
        "config": json.loads(to_json(config)),
    }
    print(json.dumps(output_payload, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
