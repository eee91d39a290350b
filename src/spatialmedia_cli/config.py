from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, NamedTuple, Sequence

LOGGER = logging.getLogger(__name__)

DEFAULT_STITCHING_SOFTWARE = "Spherical Metadata Tool"
CROP_DELIMITER = ":"
CROP_FIELDS = ("width", "height", "full_width", "full_height", "left", "top")

_ATOI_RE = re.compile(r"^\s*([+-]?\d+)")


class ConfigurationError(RuntimeError):
    """Raised when the command line cannot be turned into a configuration."""


class UsageRequested(ConfigurationError):
    """Raised when help was asked for explicitly."""


class UnrecognizedOption(ConfigurationError):
    """Raised for unknown flags, ambiguous abbreviations or missing option values."""


class MalformedCropSpec(ConfigurationError):
    """Raised when a crop argument does not hold exactly six fields."""

    def __init__(self, argument: str):
        super().__init__(f"Error: Invalid crop params: {argument}")
        self.argument = argument


class Projection(str, Enum):
    EQUIRECT = "equirect"
    CUBEMAP = "cubemap"
    SINGLE_FISHEYE = "single_fisheye"


class StereoMode(str, Enum):
    NONE = "none"
    TOP_BOTTOM = "top-bottom"
    LEFT_RIGHT = "left-right"


class CropRegion(NamedTuple):
    """Cropped area of a full panorama, in pixels."""

    width: int
    height: int
    full_width: int
    full_height: int
    left: int
    top: int

    @classmethod
    def unspecified(cls) -> CropRegion:
        return cls(0, 0, 0, 0, 0, 0)

    @property
    def is_specified(self) -> bool:
        # A zero offset is legitimate; only the all-zero region means "not given".
        return any(value != 0 for value in self)


@dataclass(frozen=True)
class Configuration:
    input_path: str = ""
    output_path: str = ""
    inject: bool = True
    projection: Projection = Projection.EQUIRECT
    stereo_mode: StereoMode = StereoMode.NONE
    crop: CropRegion = field(default_factory=CropRegion.unspecified)
    stitching_software: str = DEFAULT_STITCHING_SOFTWARE
    spatial_audio: bool = False

    @property
    def crop_region(self) -> CropRegion | None:
        """Return the crop region, or None when no crop was requested."""
        return self.crop if self.crop.is_specified else None

    def to_dict(self) -> dict[str, Any]:
        region = self.crop_region
        return {
            "input_path": self.input_path,
            "output_path": self.output_path,
            "inject": self.inject,
            "projection": self.projection.value,
            "stereo_mode": self.stereo_mode.value,
            "crop": list(region) if region is not None else None,
            "stitching_software": self.stitching_software,
            "spatial_audio": self.spatial_audio,
        }


def parse_projection(text: str) -> Projection:
    """Map projection text onto a Projection, falling back to equirect."""
    normalized = text.lower()
    for projection in Projection:
        if projection.value == normalized:
            return projection
    LOGGER.warning("Unknown projection %r; using %s", text, Projection.EQUIRECT.value)
    return Projection.EQUIRECT


def parse_stereo_mode(text: str) -> StereoMode:
    """Map stereo text onto a StereoMode, falling back to mono."""
    normalized = text.lower()
    for mode in StereoMode:
        if mode.value == normalized:
            return mode
    LOGGER.warning("Unknown stereo mode %r; using %s", text, StereoMode.NONE.value)
    return StereoMode.NONE


def parse_crop(text: str) -> CropRegion:
    """Parse "w:h:f_w:f_h:x:y" into a CropRegion.

    Empty fields between delimiters are skipped and fields without leading
    digits count as zero. Anything other than six fields is rejected.
    """
    tokens = [token for token in text.split(CROP_DELIMITER) if token]
    if len(tokens) != len(CROP_FIELDS):
        raise MalformedCropSpec(text)
    return CropRegion(*(_atoi(token) for token in tokens))


def _atoi(token: str) -> int:
    match = _ATOI_RE.match(token)
    if not match:
        return 0
    return int(match.group(1))


def resolve_paths(args: Sequence[str]) -> tuple[str, str]:
    """Derive (input, output) from the tail of the raw argument vector.

    ``args`` includes the program name. The input is the second-to-last
    argument once at least two arguments follow the program name, the output
    is the last one once at least three do.
    """
    count = len(args)
    input_path = args[count - 2] if count > 2 else ""
    output_path = args[count - 1] if count > 3 else ""
    return input_path, output_path
