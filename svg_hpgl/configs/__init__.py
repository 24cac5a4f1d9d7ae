"""Plot configuration loading and validation."""

from svg_hpgl.configs.loader import (
    ConfigError,
    ConversionOptions,
    OutputOptions,
    PenSelector,
    PlotConfigV1,
    coerce_options,
    coerce_pens,
    load_config,
)

__all__ = [
    "ConfigError",
    "ConversionOptions",
    "OutputOptions",
    "PenSelector",
    "PlotConfigV1",
    "coerce_options",
    "coerce_pens",
    "load_config",
]
