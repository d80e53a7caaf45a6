"""Load ladder engine settings from a TOML file."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any
import tomllib

from domain.rating.calculator import RatingParameters

ROOT_DIR = Path(__file__).resolve().parents[2]
DEFAULT_CONFIG_PATH = ROOT_DIR / "configs" / "ladder" / "default.toml"


@dataclass(frozen=True)
class CascadeParameters:
    """Deadlines for the recomputation unit of work."""

    lock_wait_seconds: float = 500.0
    timeout_seconds: float = 2000.0


@dataclass(frozen=True)
class LadderConfig:
    """Configuration for one ladder deployment."""

    name: str
    description: str | None
    file_path: Path | None
    rating: RatingParameters
    cascade: CascadeParameters

    def as_config_json(self) -> dict[str, Any]:
        return {
            "baseline_rating": self.rating.baseline_rating,
            "ranked_stake": self.rating.ranked_stake,
            "friendly_stake": self.rating.friendly_stake,
            "difference_scale": self.rating.difference_scale,
            "max_change": self.rating.max_change,
            "min_change": self.rating.min_change,
            "friendly_category_id": self.rating.friendly_category_id,
            "lock_wait_seconds": self.cascade.lock_wait_seconds,
            "timeout_seconds": self.cascade.timeout_seconds,
        }


def default_ladder_config() -> LadderConfig:
    return LadderConfig(
        name="default",
        description=None,
        file_path=None,
        rating=RatingParameters(),
        cascade=CascadeParameters(),
    )


def load_ladder_config(file_path: Path) -> LadderConfig:
    """Load and validate one ladder TOML config file."""
    if not file_path.exists():
        raise FileNotFoundError(f"Config file not found: {file_path}")
    if not file_path.is_file():
        raise ValueError(f"Config path is not a file: {file_path}")

    with file_path.open("rb") as file:
        raw = tomllib.load(file)
    return _parse_ladder_config(raw, file_path)


def _parse_ladder_config(raw: dict[str, Any], file_path: Path) -> LadderConfig:
    ladder_raw = raw.get("ladder", {})
    rating_raw = raw.get("rating", {})
    cascade_raw = raw.get("cascade", {})

    name = str(ladder_raw.get("name", "")).strip()
    if not name:
        raise ValueError(f"{file_path}: [ladder].name is required")

    description_value = ladder_raw.get("description")
    description = None if description_value is None else str(description_value)

    rating = RatingParameters(
        baseline_rating=int(rating_raw.get("baseline_rating", 5000)),
        ranked_stake=int(rating_raw.get("ranked_stake", 100)),
        friendly_stake=int(rating_raw.get("friendly_stake", 50)),
        difference_scale=float(rating_raw.get("difference_scale", 0.05)),
        max_change=int(rating_raw.get("max_change", 200)),
        min_change=int(rating_raw.get("min_change", 1)),
        friendly_category_id=int(rating_raw.get("friendly_category_id", 47)),
    )
    cascade = CascadeParameters(
        lock_wait_seconds=float(cascade_raw.get("lock_wait_seconds", 500.0)),
        timeout_seconds=float(cascade_raw.get("timeout_seconds", 2000.0)),
    )
    _validate_rating(file_path=file_path, rating=rating)
    _validate_cascade(file_path=file_path, cascade=cascade)

    return LadderConfig(
        name=name,
        description=description,
        file_path=file_path,
        rating=rating,
        cascade=cascade,
    )


def _validate_rating(*, file_path: Path, rating: RatingParameters) -> None:
    if rating.baseline_rating <= 0:
        raise ValueError(f"{file_path}: [rating].baseline_rating must be > 0")
    if rating.ranked_stake <= 0:
        raise ValueError(f"{file_path}: [rating].ranked_stake must be > 0")
    if rating.friendly_stake <= 0:
        raise ValueError(f"{file_path}: [rating].friendly_stake must be > 0")
    if rating.difference_scale <= 0.0:
        raise ValueError(f"{file_path}: [rating].difference_scale must be > 0")
    if rating.min_change <= 0:
        raise ValueError(f"{file_path}: [rating].min_change must be > 0")
    if rating.max_change < rating.min_change:
        raise ValueError(f"{file_path}: [rating].max_change must be >= min_change")
    if rating.friendly_category_id <= 0:
        raise ValueError(f"{file_path}: [rating].friendly_category_id must be > 0")


def _validate_cascade(*, file_path: Path, cascade: CascadeParameters) -> None:
    if cascade.lock_wait_seconds <= 0.0:
        raise ValueError(f"{file_path}: [cascade].lock_wait_seconds must be > 0")
    if cascade.timeout_seconds <= 0.0:
        raise ValueError(f"{file_path}: [cascade].timeout_seconds must be > 0")


__all__ = [
    "CascadeParameters",
    "DEFAULT_CONFIG_PATH",
    "LadderConfig",
    "default_ladder_config",
    "load_ladder_config",
]
