"""clipstash configuration loader.

Priority (high → low):
  1. CLI flags           (handled at call site, not in this module)
  2. Environment variables  (CLIPSTASH_DATA_DIR, CLIPSTASH_HISTORY_LIMIT,
                             CLIPSTASH_POLL_INTERVAL)
  3. YAML config file       (~/.clipstash/config.yaml unless overridden)
  4. Hardcoded defaults

The core treats the resulting object as read-only input. It is passed by
reference, so a settings layer may mutate fields between operations; the
detector and ingestion coordinator re-read the fields they depend on.
All YAML reads use yaml.safe_load(), never yaml.load().
"""

from __future__ import annotations

import os
import warnings
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_DEFAULT_DATA_DIR: Path = Path.home() / ".clipstash"
_GLOBAL_CONFIG_PATH: Path = _DEFAULT_DATA_DIR / "config.yaml"

MIN_HISTORY_LIMIT = 10
MAX_HISTORY_LIMIT = 5_000

MIB = 1024 * 1024
KIB = 1024

# Pasteboard type markers used by password managers and other apps that
# flag their clipboard writes as concealed or transient (nspasteboard.org).
DEFAULT_SENSITIVE_MARKERS: tuple[str, ...] = (
    "org.nspasteboard.ConcealedType",
    "org.nspasteboard.TransientType",
    "org.nspasteboard.AutoGeneratedType",
    "com.agilebits.onepassword",
)

_KNOWN_SECTIONS: frozenset[str] = frozenset(["capture", "history", "images", "storage"])


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a config file or environment variable holds an invalid value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class CaptureCfg:
    """Clipboard polling and filtering (config.yaml: capture:)."""

    poll_interval: float = 0.5
    ignored_sources: list[str] = field(default_factory=list)
    filter_sensitive: bool = True
    sensitive_markers: list[str] = field(
        default_factory=lambda: list(DEFAULT_SENSITIVE_MARKERS)
    )


@dataclass
class HistoryCfg:
    """Retention and duplicate suppression (config.yaml: history:).

    Attributes:
        limit: Maximum number of unpinned records kept.
        dedup_window: Seconds during which an identical capture is treated as
            a repeat rather than a new record.
    """

    limit: int = 500
    dedup_window: float = 60.0


@dataclass
class ImagesCfg:
    """Image blob handling (config.yaml: images:)."""

    max_image_size: int = 20 * MIB
    thumbnail_max_size: int = 200
    thumbnail_quality: int = 70
    hash_sample_threshold: int = 1 * MIB
    hash_sample_size: int = 1 * KIB


@dataclass
class StorageCfg:
    """On-disk locations (config.yaml: storage:)."""

    data_dir: Path = field(default_factory=lambda: _DEFAULT_DATA_DIR)

    @property
    def db_path(self) -> Path:
        return self.data_dir / "history.db"


@dataclass
class StashConfig:
    """Root configuration object, built by load_config() from YAML + env layers."""

    capture: CaptureCfg = field(default_factory=CaptureCfg)
    history: HistoryCfg = field(default_factory=HistoryCfg)
    images: ImagesCfg = field(default_factory=ImagesCfg)
    storage: StorageCfg = field(default_factory=StorageCfg)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}' (ignored).",
                UserWarning,
                stacklevel=4,
            )


def clamp_history_limit(limit: int) -> int:
    """Clamp *limit* into the supported range, warning when it changes."""
    clamped = min(max(limit, MIN_HISTORY_LIMIT), MAX_HISTORY_LIMIT)
    if clamped != limit:
        warnings.warn(
            f"history.limit {limit} is outside [{MIN_HISTORY_LIMIT}, "
            f"{MAX_HISTORY_LIMIT}], using {clamped}.",
            UserWarning,
            stacklevel=3,
        )
    return clamped


def _validate(cfg: StashConfig) -> None:
    if cfg.capture.poll_interval <= 0:
        raise ConfigError(
            f"capture.poll_interval must be > 0, got {cfg.capture.poll_interval}"
        )
    if cfg.history.dedup_window < 0:
        raise ConfigError(
            f"history.dedup_window must be >= 0, got {cfg.history.dedup_window}"
        )
    if cfg.images.max_image_size < 1:
        raise ConfigError(
            f"images.max_image_size must be >= 1, got {cfg.images.max_image_size}"
        )
    if cfg.images.thumbnail_max_size < 1:
        raise ConfigError(
            f"images.thumbnail_max_size must be >= 1, got {cfg.images.thumbnail_max_size}"
        )
    if not 1 <= cfg.images.thumbnail_quality <= 95:
        raise ConfigError(
            f"images.thumbnail_quality must be in [1, 95], got {cfg.images.thumbnail_quality}"
        )
    if cfg.images.hash_sample_size < 1:
        raise ConfigError(
            f"images.hash_sample_size must be >= 1, got {cfg.images.hash_sample_size}"
        )


# ---------------------------------------------------------------------------
# Build
# ---------------------------------------------------------------------------


def _str_list(value: Any, key: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError(f"{key} must be a list, got {type(value).__name__}")
    return [str(v) for v in value]


def _bool(value: Any, key: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"{key} must be true or false, got {value!r}")
    return value


def _cfg_from_dict(data: dict[str, Any]) -> StashConfig:
    """Build a *StashConfig* from a raw YAML dict."""
    cfg = StashConfig()

    try:
        if "capture" in data:
            c = data["capture"] or {}
            cfg.capture = CaptureCfg(
                poll_interval=float(c.get("poll_interval", cfg.capture.poll_interval)),
                ignored_sources=_str_list(
                    c.get("ignored_sources"), "capture.ignored_sources"
                ),
                filter_sensitive=_bool(
                    c.get("filter_sensitive", cfg.capture.filter_sensitive),
                    "capture.filter_sensitive",
                ),
                sensitive_markers=(
                    _str_list(c["sensitive_markers"], "capture.sensitive_markers")
                    if "sensitive_markers" in c
                    else list(cfg.capture.sensitive_markers)
                ),
            )

        if "history" in data:
            h = data["history"] or {}
            cfg.history = HistoryCfg(
                limit=clamp_history_limit(int(h.get("limit", cfg.history.limit))),
                dedup_window=float(h.get("dedup_window", cfg.history.dedup_window)),
            )

        if "images" in data:
            i = data["images"] or {}
            cfg.images = ImagesCfg(
                max_image_size=int(i.get("max_image_size", cfg.images.max_image_size)),
                thumbnail_max_size=int(
                    i.get("thumbnail_max_size", cfg.images.thumbnail_max_size)
                ),
                thumbnail_quality=int(
                    i.get("thumbnail_quality", cfg.images.thumbnail_quality)
                ),
                hash_sample_threshold=int(
                    i.get("hash_sample_threshold", cfg.images.hash_sample_threshold)
                ),
                hash_sample_size=int(i.get("hash_sample_size", cfg.images.hash_sample_size)),
            )

        if "storage" in data:
            s = data["storage"] or {}
            if s.get("data_dir"):
                cfg.storage = StorageCfg(data_dir=Path(str(s["data_dir"])).expanduser())
    except (TypeError, ValueError) as exc:
        if isinstance(exc, ConfigError):
            raise
        raise ConfigError(f"Invalid config value: {exc}") from exc

    return cfg


def _apply_env_overrides(cfg: StashConfig) -> StashConfig:
    """Apply CLIPSTASH_* environment variable overrides."""
    if data_dir := os.environ.get("CLIPSTASH_DATA_DIR"):
        cfg.storage.data_dir = Path(data_dir).expanduser()
    if limit := os.environ.get("CLIPSTASH_HISTORY_LIMIT"):
        try:
            cfg.history.limit = clamp_history_limit(int(limit))
        except ValueError as exc:
            raise ConfigError(
                f"CLIPSTASH_HISTORY_LIMIT must be an integer, got '{limit}'"
            ) from exc
    if interval := os.environ.get("CLIPSTASH_POLL_INTERVAL"):
        try:
            cfg.capture.poll_interval = float(interval)
        except ValueError as exc:
            raise ConfigError(
                f"CLIPSTASH_POLL_INTERVAL must be a number, got '{interval}'"
            ) from exc
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: Path | None = None) -> StashConfig:
    """Load and return a merged *StashConfig*.

    Applies layers in order: defaults → YAML file → env vars.
    CLI flag overrides must be applied by the caller after this function.

    Args:
        config_path: Override the config file path (for testing).

    Returns:
        Fully merged *StashConfig* with env var overrides applied.

    Raises:
        ConfigError: If the file or an environment variable holds an
            invalid value.
    """
    path = config_path if config_path is not None else _GLOBAL_CONFIG_PATH

    raw: dict[str, Any] = {}
    if path.exists():
        try:
            raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Config file '{path}' is not valid YAML: {exc}") from exc
        if not isinstance(raw, dict):
            raise ConfigError(f"Config file '{path}' must contain a mapping at top level.")
        _warn_unknown_keys(raw, path)

    cfg = _cfg_from_dict(raw)
    cfg = _apply_env_overrides(cfg)
    _validate(cfg)
    return cfg


def dump_config(cfg: StashConfig) -> str:
    """Render *cfg* as YAML (the same shape load_config() reads)."""
    data = asdict(cfg)
    data["storage"]["data_dir"] = str(cfg.storage.data_dir)
    return yaml.safe_dump(data, sort_keys=False)


def ensure_global_config(global_config_path: Path | None = None) -> Path:
    """Create ``~/.clipstash/config.yaml`` with defaults if it does not exist.

    Creates the parent directory with mode 0o700 and the config file with
    mode 0o600 (owner-readable only).

    Args:
        global_config_path: Override path (for testing).

    Returns:
        Path to the config file.
    """
    target = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    target.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

    if not target.exists():
        content = (
            "# clipstash configuration.\n"
            "# Environment variables CLIPSTASH_DATA_DIR, CLIPSTASH_HISTORY_LIMIT and\n"
            "# CLIPSTASH_POLL_INTERVAL override the values below.\n"
            "\n"
            "capture:\n"
            "  poll_interval: 0.5\n"
            "  filter_sensitive: true\n"
            "  ignored_sources: []\n"
            "\n"
            "history:\n"
            "  limit: 500\n"
            "\n"
            "images:\n"
            "  max_image_size: 20971520\n"
        )
        target.write_text(content, encoding="utf-8")
        target.chmod(0o600)

    return target
