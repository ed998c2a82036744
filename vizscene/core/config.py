from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError


@dataclass
class Settings:
    log_level: str
    json_logs: bool
    output_dir: str
    http_timeout: float
    log_dir: str = "logs"


def _read_env_file() -> dict[str, str]:
    """Load minimal .env to support VIZ_* keys if not in the environment.

    We intentionally do not overwrite existing os.environ values.
    """
    env_path = Path.cwd() / ".env"
    env: dict[str, str] = {}
    if not env_path.exists():
        return env
    try:
        for line in env_path.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                continue
            k, v = line.split("=", 1)
            env[k.strip()] = v.strip().strip('"').strip("'")
    except OSError:
        return {}
    return env


def _get_env(name: str, env_file: dict[str, str] | None = None) -> str | None:
    # Priority: process env -> .env
    val = os.getenv(name)
    if val:
        return val
    if env_file and name in env_file:
        return env_file[name]
    return None


def get_settings() -> Settings:
    env_file = _read_env_file()
    level = _get_env("VIZ_LOG_LEVEL", env_file) or "INFO"
    json_logs = (_get_env("VIZ_JSON_LOGS", env_file) or "").lower() in {"1", "true", "yes"}
    output_dir = _get_env("VIZ_OUTPUT_DIR", env_file) or "charts"
    timeout_raw = _get_env("VIZ_HTTP_TIMEOUT", env_file)
    try:
        timeout = float(timeout_raw) if timeout_raw else 30.0
    except ValueError:
        timeout = 30.0
    return Settings(
        log_level=level,
        json_logs=json_logs,
        output_dir=output_dir,
        http_timeout=timeout,
        log_dir=_get_env("VIZ_LOG_DIR", env_file) or "logs",
    )


@dataclass(frozen=True)
class Margins:
    top: float = 40
    right: float = 40
    bottom: float = 40
    left: float = 70


@dataclass(frozen=True)
class SimulationOptions:
    """Force layout knobs exposed through chart configuration.

    ``None`` means "use the simulation default".
    """

    charge_strength: float | None = None
    link_distance: float | None = None
    decay_rate: float | None = None


@dataclass(frozen=True)
class ChartConfig:
    width: float = 640
    height: float = 400
    margins: Margins = field(default_factory=Margins)
    color_palette: str | tuple[str, ...] | None = None
    domain_override: tuple[Any, Any] | None = None
    padding_fraction: float = 0.0
    simulation: SimulationOptions = field(default_factory=SimulationOptions)
    legend_bucket_count: int | None = None
    title: str | None = None

    @property
    def inner_width(self) -> float:
        return self.width - self.margins.left - self.margins.right

    @property
    def inner_height(self) -> float:
        return self.height - self.margins.top - self.margins.bottom

    def validate(self) -> ChartConfig:
        """Check the configuration before any layout work begins.

        Returns:
            The same config, for chaining

        Raises:
            ConfigError: If any option is outside its accepted range
        """
        if self.width <= 0 or self.height <= 0:
            raise ConfigError(f"width and height must be positive, got {self.width}x{self.height}")
        m = self.margins
        if min(m.top, m.right, m.bottom, m.left) < 0:
            raise ConfigError(f"margins must be non-negative, got {m}")
        if self.inner_width < 0 or self.inner_height < 0:
            raise ConfigError("margins leave no drawable area")
        if not 0.0 <= self.padding_fraction < 1.0:
            raise ConfigError(f"padding_fraction must be in [0, 1), got {self.padding_fraction}")
        if self.legend_bucket_count is not None and self.legend_bucket_count < 1:
            raise ConfigError(f"legend_bucket_count must be >= 1, got {self.legend_bucket_count}")
        decay = self.simulation.decay_rate
        if decay is not None and not 0.0 < decay < 1.0:
            raise ConfigError(f"simulation.decay_rate must be in (0, 1), got {decay}")
        distance = self.simulation.link_distance
        if distance is not None and distance < 0:
            raise ConfigError(f"simulation.link_distance must be >= 0, got {distance}")
        if self.domain_override is not None and len(self.domain_override) != 2:
            raise ConfigError("domain_override must be a [min, max] pair")
        if isinstance(self.color_palette, tuple) and not self.color_palette:
            raise ConfigError("color_palette must not be empty")
        return self

    def merged(self, overrides: dict[str, Any]) -> ChartConfig:
        """Return a copy with ``overrides`` (a parsed mapping) applied."""
        return ChartConfig.from_dict(overrides, base=self)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any], base: ChartConfig | None = None) -> ChartConfig:
        """Build a config from a parsed mapping, filling gaps from ``base``.

        Keys use snake_case; camelCase spellings of the documented options
        (``colorPalette``, ``simulationParams`` ...) are accepted too.
        """
        base = base or cls()
        data = {_snake(k): v for k, v in (data or {}).items()}
        if "simulation_params" in data:
            data["simulation"] = data.pop("simulation_params")

        unknown = set(data) - {
            "width",
            "height",
            "margins",
            "color_palette",
            "domain_override",
            "padding_fraction",
            "simulation",
            "legend_bucket_count",
            "title",
        }
        if unknown:
            raise ConfigError(f"Unknown chart options: {', '.join(sorted(unknown))}")

        kwargs: dict[str, Any] = {}
        for key in ("width", "height", "padding_fraction"):
            if key in data:
                kwargs[key] = _number(key, data[key])
        if "legend_bucket_count" in data:
            kwargs["legend_bucket_count"] = int(data["legend_bucket_count"])
        if "title" in data:
            kwargs["title"] = data["title"]
        if "margins" in data:
            kwargs["margins"] = replace(base.margins, **_checked(data["margins"], Margins))
        if "simulation" in data:
            sim = {_snake(k): v for k, v in (data["simulation"] or {}).items()}
            kwargs["simulation"] = replace(base.simulation, **_checked(sim, SimulationOptions))
        if "color_palette" in data:
            palette = data["color_palette"]
            kwargs["color_palette"] = palette if isinstance(palette, str) or palette is None else tuple(palette)
        if "domain_override" in data:
            override = data["domain_override"]
            kwargs["domain_override"] = tuple(override) if override is not None else None

        return replace(base, **kwargs).validate()


def load_chart_config(path: str | Path, base: ChartConfig | None = None) -> ChartConfig:
    """Load a chart configuration YAML file.

    Args:
        path: YAML file with chart options at the top level
        base: Defaults for options the file omits

    Returns:
        Validated ChartConfig

    Raises:
        ConfigError: If the file is missing or holds invalid options
    """
    cfg_path = Path(path)
    if not cfg_path.exists():
        raise ConfigError(f"Config file not found: {cfg_path}")
    with cfg_path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file must contain a mapping: {cfg_path}")
    return ChartConfig.from_dict(data, base=base)


def _snake(key: str) -> str:
    out = []
    for ch in key:
        if ch.isupper():
            out.append("_")
            out.append(ch.lower())
        else:
            out.append(ch)
    return "".join(out)


def _number(key: str, value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{key} must be a number, got {value!r}") from e


def _checked(values: dict[str, Any], target: type) -> dict[str, Any]:
    allowed = set(target.__dataclass_fields__)
    values = {_snake(k): v for k, v in (values or {}).items()}
    unknown = set(values) - allowed
    if unknown:
        raise ConfigError(f"Unknown {target.__name__} options: {', '.join(sorted(unknown))}")
    return {k: (_number(k, v) if v is not None else None) for k, v in values.items()}
