"""Deterministic color assignment for process tags.

Colors are picked from a fixed palette either by a stable hash of the command
text, so a command keeps its color when the launch order changes, or by launch
index. Python's built-in ``hash()`` is salted per interpreter run, so the
command policy uses CRC-32 instead.
"""

import zlib
from enum import StrEnum

from ._models import RGB, LaunchSpec, ProcessTag

# https://coolors.co/ff595e-ff924c-ffca3a-c5ca30-8ac926-52a675-1982c4-4267ac-6a4c93
PALETTE: tuple[RGB, ...] = (
    (255, 89, 94),
    (255, 146, 76),
    (255, 202, 58),
    (197, 202, 48),
    (138, 201, 38),
    (82, 166, 117),
    (25, 130, 196),
    (66, 103, 172),
    (106, 76, 147),
)


class ColorPolicy(StrEnum):
    """How a launch spec is mapped to a palette entry."""

    COMMAND = "command"
    INDEX = "index"


def stable_hash(text: str) -> int:
    """Return a hash of ``text`` that is identical across interpreter runs."""
    return zlib.crc32(text.encode("utf-8"))


def assign_color(spec: LaunchSpec, policy: ColorPolicy = ColorPolicy.COMMAND) -> RGB:
    """Pick the display color for a launch spec.

    Args:
        spec: The launch spec to color.
        policy: Whether to key the color on the command text or the index.

    Returns:
        An entry of PALETTE.
    """
    key = stable_hash(spec.command) if policy == ColorPolicy.COMMAND else spec.index
    return PALETTE[key % len(PALETTE)]


def make_tag(
    spec: LaunchSpec,
    identifier: str,
    policy: ColorPolicy = ColorPolicy.COMMAND,
) -> ProcessTag:
    """Build the process tag for a launch spec."""
    return ProcessTag(color=assign_color(spec, policy), identifier=identifier)
