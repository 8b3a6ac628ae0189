"""Engine settings read from a JSON config file."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from bus_ledger.header_inference import HeaderProfile
from bus_ledger.profiles import DEFAULT_PROFILES, apply_overrides
from bus_ledger.shared import VAT_AMOUNT_TOLERANCE

SUPPORTED_CONFIG_SUFFIXES = {".json", ".yml", ".yaml"}


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class EngineSettings:
    vat_tolerance: float = VAT_AMOUNT_TOLERANCE
    profiles: Mapping[str, HeaderProfile] = field(default_factory=lambda: dict(DEFAULT_PROFILES))

    def profile(self, kind: str) -> HeaderProfile:
        return self.profiles[kind]


def _non_negative_number(payload: Mapping[str, Any], key: str, default: float) -> float:
    value = payload.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        raise ConfigError(f"'{key}' must be a non-negative number")
    return value


def settings_from_mapping(payload: Mapping[str, Any]) -> EngineSettings:
    profiles = dict(DEFAULT_PROFILES)
    overrides = payload.get("profiles") or {}
    if not isinstance(overrides, Mapping):
        raise ConfigError("'profiles' must be an object keyed by dataset kind")
    for kind, changes in overrides.items():
        if kind not in profiles:
            raise ConfigError(f"Unknown dataset kind in profiles: '{kind}'")
        if not isinstance(changes, Mapping):
            raise ConfigError(f"Profile override for '{kind}' must be an object")
        try:
            profiles[kind] = apply_overrides(profiles[kind], changes)
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc

    return EngineSettings(
        vat_tolerance=_non_negative_number(payload, "vat_tolerance", VAT_AMOUNT_TOLERANCE),
        profiles=profiles,
    )


def load_settings(path: str | Path | None) -> EngineSettings:
    if path is None:
        return EngineSettings()
    config_path = Path(path)
    if not config_path.exists():
        raise ConfigError(f"Config not found: {config_path}")
    suffix = config_path.suffix.lower()
    if suffix not in SUPPORTED_CONFIG_SUFFIXES:
        raise ConfigError("Config must be .json, .yml, or .yaml")
    if suffix in {".yml", ".yaml"}:
        raise ConfigError("YAML configs are not supported yet. Use JSON for now.")
    try:
        payload = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Could not read config: {exc}") from exc
    if not isinstance(payload, dict):
        raise ConfigError("Config root must be a JSON object.")
    return settings_from_mapping(payload)


STARTER_CONFIG = {
    "vat_tolerance": VAT_AMOUNT_TOLERANCE,
    "profiles": {
        "daily": {
            "scan_rows": 20,
            "roles": {
                "driver": {
                    "high": list(DEFAULT_PROFILES["daily"].roles["driver"].high),
                    "low": list(DEFAULT_PROFILES["daily"].roles["driver"].low),
                }
            },
        },
        "transit": {"scan_rows": 30},
    },
}


def starter_config_text() -> str:
    return json.dumps(STARTER_CONFIG, indent=2, ensure_ascii=False) + "\n"
