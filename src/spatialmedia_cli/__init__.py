"""Command line configuration for injecting spherical video and spatial audio metadata."""

from spatialmedia_cli.config import (
    Configuration,
    ConfigurationError,
    CropRegion,
    MalformedCropSpec,
    Projection,
    StereoMode,
    UnrecognizedOption,
    UsageRequested,
)
from spatialmedia_cli.parser import parse, scan

__all__ = [
    "Configuration",
    "ConfigurationError",
    "CropRegion",
    "MalformedCropSpec",
    "Projection",
    "StereoMode",
    "UnrecognizedOption",
    "UsageRequested",
    "parse",
    "scan",
]
