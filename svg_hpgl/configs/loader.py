"""Plot configuration: pen selectors, conversion options, output wrapping.

Loads and validates ``plot.yaml`` into pydantic models.  Library entry
points take the models directly; plain dicts go through the same models
(see :func:`coerce_pens`, :func:`coerce_options`).

Schema (``plot.v1``)::

    schema: plot.v1
    pens:
      - pen: 1
        stroke: "rgb(0, 0, 0)"          # true | colour | [colours]
        cmd: "VS10"                     # optional, emitted after SP1;PU;
    options:
      segments_per_unit: 1.0            # curve resolution (segments/unit)
      rotation: 0.0                     # degrees, about the plot origin
      offset_x: 0.0
      offset_y: 0.0
      scale: 1.0                        # non-zero
      mirror_x: false
      mirror_y: false
    output:
      prefix: ""
      suffix: ""

Usage::

    from svg_hpgl.configs.loader import load_config
    cfg = load_config()                   # default path
    cfg = load_config("/custom/plot.yaml") # explicit path
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from svg_hpgl.utils.fs import load_yaml

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "plot.v1"
DEFAULT_CONFIG_PATH = Path(__file__).parent / "plot.yaml"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when configuration validation fails."""

    pass


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class PenSelector(BaseModel):
    """One pen and the stroke colours it draws.

    ``stroke: true`` selects every stroked shape; a string or a list of
    strings selects shapes by normalized stroke colour
    (``rgb(r, g, b)``).
    """
    model_config = ConfigDict(frozen=True)

    pen: int = Field(..., ge=1, description="Pen number (SP<n>)")
    stroke: Union[bool, str, List[str]] = Field(True, description="Stroke selector")
    cmd: Optional[str] = Field(None, description="Extra instruction emitted after pen select")

    @field_validator('stroke')
    @classmethod
    def validate_stroke(cls, v: Union[bool, str, List[str]]) -> Union[bool, str, List[str]]:
        if v is False:
            raise ValueError("stroke must be true, a colour or a list of colours, got false")
        if isinstance(v, str) and not v.strip():
            raise ValueError("stroke colour must be non-empty")
        if isinstance(v, list) and not v:
            raise ValueError("stroke colour list must be non-empty")
        return v

    @field_validator('cmd')
    @classmethod
    def validate_cmd(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip().rstrip(";")
        if ";" in v:
            raise ValueError(f"cmd must be a single instruction, got {v!r}")
        return v or None

    def colors(self) -> list[str] | None:
        """Selected colours, ``None`` for any stroke."""
        if self.stroke is True:
            return None
        if isinstance(self.stroke, str):
            return [self.stroke]
        return list(self.stroke)


class ConversionOptions(BaseModel):
    """Geometry options applied to every shape.

    The user transform is built as offset -> mirror -> rotate -> scale
    and applied on top of the document's own transforms.
    """
    model_config = ConfigDict(frozen=True)

    segments_per_unit: float = Field(1.0, description="Curve segments per document unit (<= 0: minimum of 2 per curve)")
    rotation: float = Field(0.0, description="Clockwise rotation about the origin (degrees)")
    offset_x: float = Field(0.0, description="X offset (document units, before rotation)")
    offset_y: float = Field(0.0, description="Y offset (document units, before rotation)")
    scale: float = Field(1.0, description="Uniform scale into plotter units")
    mirror_x: bool = Field(False, description="Negate X")
    mirror_y: bool = Field(False, description="Negate Y")

    @field_validator('scale')
    @classmethod
    def validate_scale(cls, v: float) -> float:
        if v == 0:
            raise ValueError("scale must be non-zero")
        return v

    @property
    def bezier_resolution(self) -> float:
        """Resolution for Bézier flattening: ten times the arc resolution."""
        return self.segments_per_unit * 10.0


class OutputOptions(BaseModel):
    """Text wrapped around the serialized program."""
    model_config = ConfigDict(frozen=True)

    prefix: str = Field("", description="Written before the first instruction")
    suffix: str = Field("", description="Written after the last instruction")


class PlotConfigV1(BaseModel):
    """Complete plot configuration (plot.v1 schema)."""
    model_config = ConfigDict(populate_by_name=True)

    schema_version: str = Field(SCHEMA_VERSION, alias="schema", description="Schema version")
    pens: List[PenSelector] = Field(
        default_factory=lambda: [PenSelector(pen=1)],
        min_length=1,
        description="Pens in plot order",
    )
    options: ConversionOptions = Field(default_factory=ConversionOptions)
    output: OutputOptions = Field(default_factory=OutputOptions)

    @field_validator('schema_version')
    @classmethod
    def validate_schema(cls, v: str) -> str:
        if v != SCHEMA_VERSION:
            raise ValueError(f"Expected schema '{SCHEMA_VERSION}', got '{v}'")
        return v

    @model_validator(mode='after')
    def warn_duplicate_pens(self) -> 'PlotConfigV1':
        seen: set[int] = set()
        for selector in self.pens:
            if selector.pen in seen:
                logger.warning("Pen %d is selected more than once", selector.pen)
            seen.add(selector.pen)
        return self


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------


def coerce_pens(pens: Optional[Iterable[Union[PenSelector, dict]]]) -> list[PenSelector]:
    """Validate pen selectors; ``None`` means one pen for every stroke.

    Raises
    ------
    pydantic.ValidationError
        If a selector is invalid (e.g. pen < 1).
    """
    if pens is None:
        return [PenSelector(pen=1)]
    return [p if isinstance(p, PenSelector) else PenSelector.model_validate(p) for p in pens]


def coerce_options(options: Union[ConversionOptions, dict, None]) -> ConversionOptions:
    if options is None:
        return ConversionOptions()
    if isinstance(options, ConversionOptions):
        return options
    return ConversionOptions.model_validate(options)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(path: Union[str, Path, None] = None) -> PlotConfigV1:
    """Load and validate plot configuration from YAML.

    Parameters
    ----------
    path : str | Path | None
        Path to ``plot.yaml``.  ``None`` loads the default shipped
        alongside this module.

    Returns
    -------
    PlotConfigV1
        Validated configuration.

    Raises
    ------
    ConfigError
        If the file is not valid YAML, is empty, is not a mapping or
        fails validation.
    FileNotFoundError
        If *path* does not exist.
    """
    path = DEFAULT_CONFIG_PATH if path is None else Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    logger.info("Loading configuration from %s", path)

    try:
        data: Any = load_yaml(path)
    except yaml.YAMLError as exc:
        raise ConfigError(str(exc)) from exc
    if data is None:
        raise ConfigError(f"Empty configuration file: {path}")
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration root must be a mapping: {path}")

    try:
        cfg = PlotConfigV1.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Plot config validation failed at {path}: {exc}") from exc

    logger.debug(
        "Config: %d pen(s), segments_per_unit=%g, scale=%g",
        len(cfg.pens), cfg.options.segments_per_unit, cfg.options.scale,
    )
    return cfg
