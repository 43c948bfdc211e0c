"""Run configuration and validation."""
from __future__ import annotations

import math
import os
from dataclasses import dataclass, replace
from typing import Callable, Dict, Mapping, Optional

from .errors import ConfigurationError, InvalidDpi, InvalidSensitivity

DEFAULT_DPI = 300.0
DEFAULT_SENSITIVITY = 0.12
DEFAULT_OUTPUT_DIR = "output"
DEFAULT_CROP_TOLERANCE = 10
DEFAULT_REPORT_NAME = "report.json"

ENV_PREFIX = "PDFDIFF_"


@dataclass(frozen=True)
class RunConfig:
    """Tunables read by the comparison pipeline."""

    dpi: float = DEFAULT_DPI
    sensitivity: float = DEFAULT_SENSITIVITY
    output_dir: str = DEFAULT_OUTPUT_DIR
    verbose: bool = False
    crop_tolerance: int = DEFAULT_CROP_TOLERANCE
    workers: int = 1
    report_name: str = DEFAULT_REPORT_NAME

    def to_dict(self) -> Dict[str, object]:
        return {
            "dpi": self.dpi,
            "sensitivity": self.sensitivity,
            "output_dir": self.output_dir,
            "verbose": self.verbose,
            "crop_tolerance": self.crop_tolerance,
            "workers": self.workers,
            "report_name": self.report_name,
        }

    def copy(self, **overrides: object) -> "RunConfig":
        return replace(self, **overrides)

    def validate(self) -> "RunConfig":
        """Return ``self`` or raise a :class:`ConfigurationError`."""

        validate_dpi(self.dpi)
        validate_sensitivity(self.sensitivity)
        if not str(self.output_dir).strip():
            raise ConfigurationError("output_dir must not be empty")
        if isinstance(self.crop_tolerance, bool) or not isinstance(self.crop_tolerance, int):
            raise ConfigurationError(f"crop_tolerance must be an integer, got {self.crop_tolerance!r}")
        if not 0 <= self.crop_tolerance <= 255:
            raise ConfigurationError(f"crop_tolerance must be in [0, 255], got {self.crop_tolerance}")
        if isinstance(self.workers, bool) or not isinstance(self.workers, int) or self.workers < 1:
            raise ConfigurationError(f"workers must be a positive integer, got {self.workers!r}")
        return self

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "RunConfig":
        """Build a config from ``PDFDIFF_*`` environment variables.

        Unset variables keep their defaults. Values are parsed but not range
        checked; call :meth:`validate` before use.
        """

        env = os.environ if environ is None else environ
        overrides: Dict[str, object] = {}
        for field_name, parser in _ENV_FIELDS.items():
            raw = env.get(ENV_PREFIX + field_name.upper())
            if raw is None or not raw.strip():
                continue
            try:
                overrides[field_name] = parser(raw.strip())
            except ValueError as exc:
                raise ConfigurationError(
                    f"Invalid value for {ENV_PREFIX}{field_name.upper()}: {raw!r}"
                ) from exc
        return cls(**overrides)


def validate_dpi(dpi: float) -> float:
    if isinstance(dpi, bool) or not isinstance(dpi, (int, float)):
        raise InvalidDpi(f"DPI must be a number, got {dpi!r}")
    if not math.isfinite(dpi) or dpi <= 0:
        raise InvalidDpi(f"DPI must be greater than 0, got {dpi}")
    return float(dpi)


def validate_sensitivity(sensitivity: float) -> float:
    if isinstance(sensitivity, bool) or not isinstance(sensitivity, (int, float)):
        raise InvalidSensitivity(f"Sensitivity must be a number, got {sensitivity!r}")
    if not math.isfinite(sensitivity) or not 0.0 <= sensitivity <= 1.0:
        raise InvalidSensitivity(f"Sensitivity must be in [0, 1], got {sensitivity}")
    return float(sensitivity)


def _parse_bool(value: str) -> bool:
    lowered = value.lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    raise ValueError(value)


_ENV_FIELDS: Dict[str, Callable[[str], object]] = {
    "dpi": float,
    "sensitivity": float,
    "output_dir": str,
    "verbose": _parse_bool,
    "crop_tolerance": int,
    "workers": int,
}
