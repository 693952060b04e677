"""Version parsing and bumping utilities.

Handles conversion between version strings and semver objects, with
special handling for incomplete version strings (e.g., "1.0" → "1.0.0").
"""

from __future__ import annotations

import semver

from .errors import VersionError
from .models import BumpLevel


def parse_version(version_str: str) -> semver.Version:
    """Parse a version string into a semver.Version object.

    Handles incomplete versions by padding with zeros and tolerates a
    leading "v":
    - "1" → "1.0.0"
    - "1.2" → "1.2.0"
    - "v1.2.3-beta.1" → "1.2.3-beta.1"

    Raises:
        VersionError: If the string is not a semantic version.
    """
    text = version_str.strip()
    if text[:1] in ("v", "V"):
        text = text[1:]
    try:
        return semver.Version.parse(text, optional_minor_and_patch=True)
    except (ValueError, TypeError) as e:
        raise VersionError(f"{version_str!r}: not a semantic version") from e


def bump_version(version: semver.Version, level: BumpLevel) -> semver.Version:
    """Increment a version by the given level.

    Incrementing a component zeroes every lower one. A patch bump of a
    prerelease releases it instead of incrementing:

        "1.2.3" + MINOR → "1.3.0"
        "1.2.3-beta.1" + PATCH → "1.2.3"

    Raises:
        ValueError: If level is BumpLevel.NONE.
    """
    if level is BumpLevel.MAJOR:
        return version.bump_major()
    if level is BumpLevel.MINOR:
        return version.bump_minor()
    if level is BumpLevel.PATCH:
        if version.prerelease:
            return version.finalize_version()
        return version.bump_patch()
    raise ValueError("cannot bump a version by BumpLevel.NONE")


def stable_version(version_str: str) -> str:
    """Strip prerelease and build metadata from a version string.

    Examples:
        "1.3.0-beta.2" → "1.3.0"
        "2.0.0" → "2.0.0"
    """
    return str(parse_version(version_str).finalize_version())


def format_prerelease(base: semver.Version, tag: str, counter: int) -> str:
    """Render MAJOR.MINOR.PATCH-TAG.N for a prerelease of base."""
    return f"{base.major}.{base.minor}.{base.patch}-{tag}.{counter}"
