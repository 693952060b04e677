"""Tests for bumper.versions."""

from __future__ import annotations

import pytest
import semver

from bumper.errors import VersionError
from bumper.models import BumpLevel
from bumper.versions import bump_version, format_prerelease, parse_version, stable_version


class TestParseVersion:
    def test_full_semver(self) -> None:
        v = parse_version("1.2.3")
        assert v.major == 1
        assert v.minor == 2
        assert v.patch == 3

    def test_two_part_version(self) -> None:
        v = parse_version("1.2")
        assert (v.major, v.minor, v.patch) == (1, 2, 0)

    def test_single_part_version(self) -> None:
        v = parse_version("5")
        assert (v.major, v.minor, v.patch) == (5, 0, 0)

    def test_leading_v_and_whitespace(self) -> None:
        assert str(parse_version(" v2.0.1\n")) == "2.0.1"

    def test_prerelease(self) -> None:
        v = parse_version("1.3.0-beta.2")
        assert v.prerelease == "beta.2"

    @pytest.mark.parametrize("text", ["1.2.3", "0.0.0", "1.3.0-beta.1", "10.20.30-rc.12"])
    def test_canonical_round_trip(self, text: str) -> None:
        assert str(parse_version(text)) == text
        assert parse_version(str(parse_version(text))) == parse_version(text)

    @pytest.mark.parametrize("text", ["", "abc", "1.2.3.4", "1..2"])
    def test_invalid(self, text: str) -> None:
        with pytest.raises(VersionError):
            parse_version(text)


class TestBumpVersion:
    def test_major_zeroes_lower(self) -> None:
        assert str(bump_version(parse_version("1.2.3"), BumpLevel.MAJOR)) == "2.0.0"

    def test_minor_zeroes_patch(self) -> None:
        assert str(bump_version(parse_version("1.2.3"), BumpLevel.MINOR)) == "1.3.0"

    def test_patch(self) -> None:
        assert str(bump_version(parse_version("1.0.99"), BumpLevel.PATCH)) == "1.0.100"

    def test_patch_releases_prerelease(self) -> None:
        assert str(bump_version(parse_version("1.2.3-beta.1"), BumpLevel.PATCH)) == "1.2.3"

    def test_none_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            bump_version(parse_version("1.2.3"), BumpLevel.NONE)


class TestStableVersion:
    def test_strips_prerelease(self) -> None:
        assert stable_version("1.3.0-beta.2") == "1.3.0"

    def test_keeps_stable(self) -> None:
        assert stable_version("2.0.0") == "2.0.0"


def test_format_prerelease() -> None:
    assert format_prerelease(semver.Version(1, 3, 0), "rc", 4) == "1.3.0-rc.4"
