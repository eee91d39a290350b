from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from typing import Any, Callable, NoReturn, Sequence

import typer

from spatialmedia_cli.config import (
    Configuration,
    MalformedCropSpec,
    UnrecognizedOption,
    UsageRequested,
    parse_crop,
    parse_projection,
    parse_stereo_mode,
    resolve_paths,
)

LOGGER = logging.getLogger(__name__)

PROG = "spatialmedia"
EXIT_HELP = 0
EXIT_USAGE_ERROR = 2
END_OF_OPTIONS = "--"

HELP_TEXT = """\
usage: spatialmedia [options] [files...]

By default prints out spatial media metadata from specified files.

positional arguments:
  file                  input/output files

optional arguments:
  -h, --help            show this help message and exit
  -i, --inject          injects spatial media metadata into the first file
                        specified (.mp4 or .mov) and saves the result to the
                        second file specified

Spherical Video:
  -p PROJECTION, --projection PROJECTION
                        projection type (equirect | cubemap | single_fisheye)

  --stitching-software STITCHING_SOFTWARE

  -s STEREO-MODE, --stereo STEREO-MODE
                        stereo mode (none | top-bottom | left-right)
                        "none": Mono frame layout.
                        "top-bottom": Top half contains the left eye and bottom half contains the right eye.
                        "left-right": Left half contains the left eye and right half contains the right eye.
                        ( RFC: https://github.com/google/spatial-media/tree/master/docs/spherical-video-rfc.md )

  -c CROP, --crop CROP  crop region. Must specify 6 integers in the form of
                        "w:h:f_w:f_h:x:y" where w=CroppedAreaImageWidthPixels
                        h=CroppedAreaImageHeightPixels f_w=FullPanoWidthPixels
                        f_h=FullPanoHeightPixels x=CroppedAreaLeftPixels
                        y=CroppedAreaTopPixels

Spatial Audio:
  -a, --spatial-audio   spatial audio. First-order periphonic ambisonics with
                        ACN channel ordering and SN3D normalization
                        Enables injection of spatial audio metadata. If enabled, the file must contain a
                        4-channel first-order ambisonics audio track with ACN channel ordering and SN3D
                        normalization; see the [Spatial Audio RFC](../docs/spatial-audio-rfc.md) for
                        more information."""


def _request_help(_: Any) -> NoReturn:
    raise UsageRequested("help requested")


def _enable(_: Any) -> bool:
    return True


@dataclass(frozen=True)
class OptionSpec:
    short: tuple[str, ...]
    long: str
    dest: str
    handler: Callable[[Any], Any]
    takes_value: bool = False
    metavar: str | None = None

    @property
    def flags(self) -> list[str]:
        return [f"-{name}" for name in self.short] + [f"--{self.long}"]


OPTIONS: tuple[OptionSpec, ...] = (
    OptionSpec(("h", "?"), "help", "help", _request_help),
    OptionSpec(("i",), "inject", "inject", _enable),
    OptionSpec(("a",), "spatial-audio", "spatial_audio", _enable),
    OptionSpec((), "projection", "projection", parse_projection, True, "PROJECTION"),
    OptionSpec((), "stitching-software", "stitching_software", str, True, "STITCHING_SOFTWARE"),
    OptionSpec(("s",), "stereo", "stereo_mode", parse_stereo_mode, True, "STEREO-MODE"),
    OptionSpec(("c",), "crop", "crop", parse_crop, True, "CROP"),
)

SHORT_FLAGS = frozenset(name for spec in OPTIONS for name in spec.short)
LONG_NAMES = tuple(spec.long for spec in OPTIONS)
VALUE_OPTIONS = frozenset(spec.long for spec in OPTIONS if spec.takes_value)
SHORT_VALUE_FLAGS = {name: spec.long for spec in OPTIONS if spec.takes_value for name in spec.short}


class _ApplyOption(argparse.Action):
    """Run an option's handler as soon as the option is consumed."""

    def __init__(self, option_strings: list[str], dest: str, spec: OptionSpec, **kwargs: Any):
        self.spec = spec
        super().__init__(option_strings, dest, **kwargs)

    def __call__(
        self,
        parser: argparse.ArgumentParser,
        namespace: argparse.Namespace,
        values: Any,
        option_string: str | None = None,
    ) -> None:
        if self.spec.takes_value and values == []:
            # argparse drops a bare "--" given as the value
            values = END_OF_OPTIONS
        value = self.spec.handler(values)
        LOGGER.debug("%s -> %s=%r", option_string, self.dest, value)
        setattr(namespace, self.dest, value)


class _OptionParser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        raise UnrecognizedOption(message)


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse scanner from the option table."""
    parser = _OptionParser(prog=PROG, add_help=False, allow_abbrev=True)
    for spec in OPTIONS:
        parser.add_argument(
            *spec.flags,
            action=_ApplyOption,
            spec=spec,
            dest=spec.dest,
            nargs=None if spec.takes_value else 0,
            metavar=spec.metavar,
            default=argparse.SUPPRESS,
        )
    return parser


def _promote(token: str) -> str:
    """Rewrite a single-dash long option (``-crop``, ``-proj=x``) to double-dash form.

    A lone short flag keeps its short meaning and words that do not abbreviate
    a long option stay short-option clusters.
    """
    if token.startswith("-") and not token.startswith("--") and len(token) > 1:
        name = token[1:].split("=", 1)[0]
        is_short = len(name) == 1 and name in SHORT_FLAGS
        if not is_short and any(long.startswith(name) for long in LONG_NAMES):
            return f"-{token}"
    return token


def _pending_value_option(token: str) -> tuple[str, str] | None:
    """Return (leading short flags, long name) if ``token`` ends in an option still missing its value."""
    if token.startswith("--"):
        if "=" in token:
            return None
        matches = [long for long in LONG_NAMES if long.startswith(token[2:])]
        if len(matches) == 1 and matches[0] in VALUE_OPTIONS:
            return "", matches[0]
        return None
    if token.startswith("-"):
        for index, name in enumerate(token[1:], start=1):
            if name in SHORT_VALUE_FLAGS:
                if index == len(token) - 1:
                    return token[:index], SHORT_VALUE_FLAGS[name]
                return None
            if name not in SHORT_FLAGS:
                return None
    return None


def gather_options(tokens: Sequence[str]) -> list[str]:
    """Prepare the words after the program name for argparse.

    Scanning stops at ``--``. A value-taking option swallows the following
    word whatever it looks like, so ``--stitching-software -Rig`` and
    ``-c -1:2:3:4:5:6`` keep their values.
    """
    gathered: list[str] = []
    index = 0
    while index < len(tokens):
        token = tokens[index]
        if token == END_OF_OPTIONS:
            break
        token = _promote(token)
        pending = _pending_value_option(token)
        if pending is not None and index + 1 < len(tokens):
            flags, long = pending
            if flags != "-":
                gathered.append(flags)
            gathered.append(f"--{long}={tokens[index + 1]}")
            index += 2
            continue
        gathered.append(token)
        index += 1
    return gathered


def scan(args: Sequence[str]) -> Configuration:
    """Turn a raw argument vector (program name first) into a Configuration.

    Raises UsageRequested, UnrecognizedOption or MalformedCropSpec.
    """
    namespace, extras = build_parser().parse_known_args(gather_options(args[1:]))
    unknown = [token for token in extras if token.startswith("-") and token != "-"]
    if unknown:
        raise UnrecognizedOption(f"unrecognized arguments: {' '.join(unknown)}")

    input_path, output_path = resolve_paths(args)
    LOGGER.debug("Resolved input=%r output=%r", input_path, output_path)
    return Configuration(input_path=input_path, output_path=output_path, **vars(namespace))


def parse(args: Sequence[str]) -> Configuration:
    """Like scan(), but print help or a diagnostic and exit on bad input."""
    try:
        return scan(args)
    except UsageRequested:
        typer.echo(HELP_TEXT)
        raise typer.Exit(code=EXIT_HELP)
    except UnrecognizedOption as exc:
        typer.secho(f"{PROG}: {exc}", fg=typer.colors.RED, err=True)
        typer.echo(HELP_TEXT)
        raise typer.Exit(code=EXIT_USAGE_ERROR) from exc
    except MalformedCropSpec as exc:
        typer.echo(str(exc))
        raise typer.Exit(code=EXIT_USAGE_ERROR) from exc
