"""Tests for lockstep.versions."""

from __future__ import annotations

import pytest

from lockstep.errors import InvalidIncrement, InvalidVersion
from lockstep.versions import (
    available_increments,
    current_preid,
    increment,
    parse_version,
    resolve_preid,
    suggest,
    validate_version,
)


class TestValidateVersion:
    def test_plain_version(self) -> None:
        assert validate_version("3.3.0") == "3.3.0"

    def test_prerelease_and_build(self) -> None:
        assert validate_version("3.3.0-beta.1+build.5") == "3.3.0-beta.1+build.5"

    def test_strips_v_prefix_and_whitespace(self) -> None:
        assert validate_version(" v1.2.3 ") == "1.2.3"

    @pytest.mark.parametrize("bad", ["", "1.2", "latest", "1.2.3.4", "01.2.3"])
    def test_rejects_malformed(self, bad: str) -> None:
        with pytest.raises(InvalidVersion) as exc_info:
            validate_version(bad)
        assert exc_info.value.version == bad

    def test_parse_version_raises_invalid_version(self) -> None:
        with pytest.raises(InvalidVersion):
            parse_version("not-a-version")


class TestPreid:
    def test_current_preid_of_prerelease(self) -> None:
        assert current_preid("3.0.0-beta.4") == "beta"

    def test_current_preid_of_stable(self) -> None:
        assert current_preid("3.0.0") is None

    def test_numeric_prerelease_has_no_preid(self) -> None:
        assert current_preid("3.0.0-0") is None

    def test_override_wins(self) -> None:
        assert resolve_preid("3.0.0-beta.4", "rc") == "rc"

    def test_reuses_existing_channel(self) -> None:
        assert resolve_preid("3.0.0-beta.4") == "beta"

    def test_stable_without_override(self) -> None:
        assert resolve_preid("3.0.0") is None


class TestAvailableIncrements:
    def test_stable_only_without_preid(self) -> None:
        assert available_increments(None) == ["patch", "minor", "major"]

    def test_pre_increments_with_preid(self) -> None:
        assert available_increments("beta") == [
            "patch",
            "minor",
            "major",
            "prepatch",
            "preminor",
            "premajor",
            "prerelease",
        ]


class TestIncrement:
    @pytest.mark.parametrize(
        ("kind", "expected"),
        [("patch", "3.2.1"), ("minor", "3.3.0"), ("major", "4.0.0")],
    )
    def test_stable_increments(self, kind: str, expected: str) -> None:
        assert increment("3.2.0", kind) == expected

    @pytest.mark.parametrize(
        ("kind", "expected"),
        [
            ("prepatch", "3.2.1-beta.0"),
            ("preminor", "3.3.0-beta.0"),
            ("premajor", "4.0.0-beta.0"),
            ("prerelease", "3.2.1-beta.0"),
        ],
    )
    def test_pre_increments_from_stable(self, kind: str, expected: str) -> None:
        assert increment("3.2.0", kind, "beta") == expected

    def test_prerelease_continues_channel(self) -> None:
        assert increment("3.0.0-beta.4", "prerelease", "beta") == "3.0.0-beta.5"

    def test_prerelease_switches_channel(self) -> None:
        assert increment("3.0.0-beta.4", "prerelease", "rc") == "3.0.0-rc.0"

    def test_prerelease_without_counter_starts_one(self) -> None:
        assert increment("3.0.0-beta", "prerelease", "beta") == "3.0.0-beta.0"

    def test_patch_finalizes_prerelease(self) -> None:
        assert increment("3.0.1-beta.2", "patch", "beta") == "3.0.1"

    def test_minor_finalizes_prerelease_on_minor_boundary(self) -> None:
        assert increment("3.1.0-beta.2", "minor", "beta") == "3.1.0"

    def test_minor_bumps_prerelease_off_boundary(self) -> None:
        assert increment("3.1.1-beta.2", "minor", "beta") == "3.2.0"

    def test_major_finalizes_prerelease_on_major_boundary(self) -> None:
        assert increment("3.0.0-rc.1", "major", "rc") == "3.0.0"

    def test_pre_increment_requires_preid(self) -> None:
        with pytest.raises(InvalidIncrement):
            increment("3.2.0", "prerelease")

    def test_unknown_increment(self) -> None:
        with pytest.raises(InvalidIncrement):
            increment("3.2.0", "huge")

    def test_invalid_preid_is_invalid_increment(self) -> None:
        with pytest.raises(InvalidIncrement):
            increment("3.2.0", "prepatch", "be ta")


class TestSuggest:
    def test_labels_each_increment_with_its_version(self) -> None:
        assert suggest("3.2.0") == [
            ("patch", "3.2.1"),
            ("minor", "3.3.0"),
            ("major", "4.0.0"),
        ]

    def test_skips_increments_that_would_be_invalid(self) -> None:
        kinds = [kind for kind, _ in suggest("3.2.0", "be ta")]
        assert kinds == ["patch", "minor", "major"]
