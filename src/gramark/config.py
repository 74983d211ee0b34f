"""Layered TOML configuration with typed dataclass mapping.

Priority stack (highest wins):
    1. Hardcoded defaults (GramarkConfig())
    2. config/default.toml (bundled)
    3. ~/.config/gramark/config.toml (user config)
    4. CLI overrides (dot-notation)

The service token is never read from these files; it comes from the
environment variable named by ``service.token_env``.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from gramark.language import SUPPORTED_LANGUAGES
from gramark.service.models import CorrectionServiceType
from gramark.service.resolver import DEFAULT_CONFIG_URL, DEFAULT_FALLBACK_URL
from gramark.text.models import ExclusionKind

# ---------------------------------------------------------------------------
# Typed config tree (frozen, slotted dataclasses)
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class GeneralConfig:
    """Top-level general settings."""

    language: str = "en"
    auto_detect_language: bool = True
    log_level: str = "warning"


@dataclass(frozen=True, slots=True)
class EnabledServicesConfig:
    """Which correction engines are requested."""

    mlec: bool = True
    spell: bool = True
    rule: bool = True

    def service_types(self) -> tuple[CorrectionServiceType, ...]:
        """Enabled engines in request order; SPELL alone when none are enabled."""
        enabled = [
            service
            for service, on in (
                (CorrectionServiceType.MLEC, self.mlec),
                (CorrectionServiceType.SPELL, self.spell),
                (CorrectionServiceType.RULE, self.rule),
            )
            if on
        ]
        return tuple(enabled) or (CorrectionServiceType.SPELL,)


@dataclass(frozen=True, slots=True)
class ServiceConfig:
    """Correction service connection settings."""

    config_url: str = DEFAULT_CONFIG_URL
    fallback_url: str = DEFAULT_FALLBACK_URL
    token_env: str = "GRAMARK_TOKEN"
    user_auth: bool = True
    timeout_seconds: float = 30.0
    enabled: EnabledServicesConfig = field(default_factory=EnabledServicesConfig)


@dataclass(frozen=True, slots=True)
class CheckerConfig:
    """Check orchestration limits and filters."""

    cache_size: int = 200
    max_sentences: int = 100
    max_characters: int = 50_000
    min_confidence: float = 0.5
    checking_delay_ms: int = 500


@dataclass(frozen=True, slots=True)
class ExclusionsConfig:
    """Toggles for optional exclusion detectors."""

    exclude_code_blocks: bool = True
    exclude_inline_code: bool = True
    exclude_links: bool = True

    def enabled_kinds(self) -> frozenset[ExclusionKind]:
        """Exclusion kinds whose detectors should run."""
        kinds = set(ExclusionKind)
        if not self.exclude_code_blocks:
            kinds.discard(ExclusionKind.CODE_BLOCK)
        if not self.exclude_inline_code:
            kinds.discard(ExclusionKind.INLINE_CODE)
        if not self.exclude_links:
            kinds.discard(ExclusionKind.LINK)
        return frozenset(kinds)


@dataclass(frozen=True, slots=True)
class GramarkConfig:
    """Root configuration node."""

    general: GeneralConfig = field(default_factory=GeneralConfig)
    service: ServiceConfig = field(default_factory=ServiceConfig)
    checker: CheckerConfig = field(default_factory=CheckerConfig)
    exclusions: ExclusionsConfig = field(default_factory=ExclusionsConfig)

    def to_dict(self) -> dict[str, Any]:
        """Serialize the resolved tree."""
        return asdict(self)


def read_token(config: GramarkConfig) -> str | None:
    """Return the service token from the configured environment variable."""
    token = os.environ.get(config.service.token_env, "").strip()
    return token or None


# ---------------------------------------------------------------------------
# Config loading helpers
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into base. Lists replace, dicts recurse."""
    merged = dict(base)
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _coerce_value(s: str) -> bool | int | float | str:
    """Coerce a CLI string value to its typed equivalent."""
    if s.lower() == "true":
        return True
    if s.lower() == "false":
        return False
    try:
        return int(s)
    except ValueError:
        pass
    try:
        return float(s)
    except ValueError:
        pass
    return s


def _apply_dot_override(raw: dict[str, Any], dot_key: str, str_value: str) -> None:
    """Apply a dot-notation CLI override into the raw config dict.

    Example: _apply_dot_override(raw, "service.enabled.mlec", "false")
    sets raw["service"]["enabled"]["mlec"] = False
    """
    parts = dot_key.split(".")
    target = raw
    for part in parts[:-1]:
        if not isinstance(target.get(part), dict):
            target[part] = {}
        target = target[part]
    target[parts[-1]] = _coerce_value(str_value)


def _load_toml_file(path: Path) -> dict[str, Any]:
    """Load and parse a TOML file, returning empty dict if not found."""
    if not path.is_file():
        return {}
    with open(path, "rb") as f:
        return tomllib.load(f)


def _bundled_config_path(filename: str) -> Path | None:
    """Find config/<filename> in a directory above this module."""
    for parent in Path(__file__).resolve().parents[:5]:
        candidate = parent / "config" / filename
        if candidate.is_file():
            return candidate
    return None


def _load_bundled_toml(filename: str) -> dict[str, Any]:
    """Load a bundled TOML file; an installed wheel without it uses dataclass defaults."""
    path = _bundled_config_path(filename)
    return _load_toml_file(path) if path is not None else {}


_LOG_LEVELS = frozenset({"debug", "info", "warning", "error", "critical"})


def _validate(config: GramarkConfig) -> GramarkConfig:
    """Reject values the dataclass types cannot rule out.

    Raises:
        ValueError: An option is outside its allowed range.
    """
    general = config.general
    if general.language not in SUPPORTED_LANGUAGES:
        raise ValueError(
            f"general.language must be one of {sorted(SUPPORTED_LANGUAGES)}, "
            f"got {general.language!r}"
        )
    if general.log_level.lower() not in _LOG_LEVELS:
        raise ValueError(f"general.log_level {general.log_level!r} is not a logging level")
    checker = config.checker
    if not 0.0 <= checker.min_confidence <= 1.0:
        raise ValueError(
            f"checker.min_confidence must be within 0..1, got {checker.min_confidence}"
        )
    if checker.cache_size < 1:
        raise ValueError(f"checker.cache_size must be positive, got {checker.cache_size}")
    return config


def _build_config(raw: dict[str, Any]) -> GramarkConfig:
    """Map a merged raw dict to the typed GramarkConfig tree.

    Raises:
        TypeError: An unknown key appears in a section.
        ValueError: A value is out of range.
    """
    general_raw = dict(raw.get("general", {}))
    service_raw = dict(raw.get("service", {}))
    checker_raw = dict(raw.get("checker", {}))
    exclusions_raw = dict(raw.get("exclusions", {}))

    enabled = EnabledServicesConfig(**service_raw.pop("enabled", {}))
    service = ServiceConfig(**service_raw, enabled=enabled)

    return _validate(
        GramarkConfig(
            general=GeneralConfig(**general_raw),
            service=service,
            checker=CheckerConfig(**checker_raw),
            exclusions=ExclusionsConfig(**exclusions_raw),
        )
    )


def default_user_config_path() -> Path:
    return Path.home() / ".config" / "gramark" / "config.toml"


def load_config(
    user_config_path: Path | None = None,
    cli_overrides: dict[str, str] | None = None,
) -> GramarkConfig:
    """Load configuration with the 4-layer priority stack.

    Args:
        user_config_path: Path to user config TOML. Defaults to
            ~/.config/gramark/config.toml.
        cli_overrides: Dot-notation key→value pairs from CLI flags.

    Returns:
        Fully resolved, typed GramarkConfig.
    """
    # Layer 1: hardcoded defaults (implicit via dataclass defaults)
    # Layer 2: bundled default.toml
    raw = _load_bundled_toml("default.toml")

    # Layer 3: user config
    if user_config_path is None:
        user_config_path = default_user_config_path()
    raw = _deep_merge(raw, _load_toml_file(user_config_path))

    # Layer 4: CLI overrides
    if cli_overrides:
        for dot_key, str_value in cli_overrides.items():
            _apply_dot_override(raw, dot_key, str_value)

    return _build_config(raw)
