# Copyright (c) 2026 Mark Ferrell. MIT License.
"""Semantic versions embedded in arbitrary text.

A version is any string containing ``X``, ``X.Y`` or ``X.Y.Z``. Text around the
first match (``v`` prefixes, ``-rc`` suffixes, ...) is kept verbatim for
display and ignored when ordering.

References:
    - Semantic Versioning 2.0.0: https://semver.org/
"""

from __future__ import annotations

import enum
import re

from hubr.errors import MalformedInputError

VERSION_PATTERN = re.compile(r"(\d+)(?:\.(\d+))?(?:\.(\d+))?", re.ASCII)

# Displayed for an empty version, e.g. when no version file is committed yet.
ZERO_VERSION = "v0.0.0"


class Increment(enum.IntEnum):
    """A semantic version component, usable as a match group index."""

    MAJOR = 1
    MINOR = 2
    PATCH = 3

    def __str__(self) -> str:
        return self.name.lower()


def parse_increment(text: str) -> Increment:
    """Convert ``major``, ``minor`` or ``patch`` into an Increment.

    Raises:
        MalformedInputError: If text names no component.
    """
    try:
        return Increment[text.upper()]
    except KeyError:
        raise MalformedInputError(f"not an increment: {text}") from None


def _components(text: str) -> tuple[int, int, int]:
    match = VERSION_PATTERN.search(text)
    if match is None:
        return (0, 0, 0)
    return tuple(int(group or 0) for group in match.groups())  # type: ignore[return-value]


class Version:
    """An immutable version string.

    Two versions are equal when their text is equal; this is how a change of
    the version file is detected. Ordering only looks at the numeric
    components.

    Examples:
        >>> Version("v1.2.3").bump(Increment.MINOR)
        Version('v1.3.0')
        >>> Version("v1.0.0").is_before(Version("1.0.1"))
        True
    """

    __slots__ = ("_text",)

    def __init__(self, text: str = "") -> None:
        self._text = text

    @property
    def text(self) -> str:
        return self._text

    @property
    def components(self) -> tuple[int, int, int]:
        """Return (major, minor, patch), missing components being 0."""
        return _components(self._text)

    def bump(self, increment: Increment) -> Version:
        """Return a new version with one component incremented.

        Components right of the incremented one are zeroed. Text around the
        version number is kept. A version without a number bumps from v0.0.0.

        Args:
            increment: The component to increment.

        Returns:
            The bumped version.

        Examples:
            >>> Version("release-1.9-final").bump(Increment.PATCH)
            Version('release-1.9.1-final')
        """
        now = self._text
        match = VERSION_PATTERN.search(now)
        if match is None:
            now = ZERO_VERSION
            match = VERSION_PATTERN.search(now)
            assert match is not None

        parts = [int(group or 0) for group in match.groups()]
        index = increment - 1
        parts[index] += 1
        for i in range(index + 1, len(parts)):
            parts[i] = 0
        number = ".".join(str(part) for part in parts)
        return Version(now[: match.start()] + number + now[match.end() :])

    def is_before(self, other: Version) -> bool:
        """Return True if self is an earlier version than other.

        Any prefixes or suffixes are ignored.
        """
        return self.components < other.components

    def __lt__(self, other: Version) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.is_before(other)

    def __gt__(self, other: Version) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return other.is_before(self)

    def __le__(self, other: Version) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return not other.is_before(self)

    def __ge__(self, other: Version) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return not self.is_before(other)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._text == other._text

    def __hash__(self) -> int:
        return hash(self._text)

    def __bool__(self) -> bool:
        return bool(self._text)

    def __repr__(self) -> str:
        return f"Version({self._text!r})"

    def __str__(self) -> str:
        """Return the version text, or v0.0.0 if it is empty."""
        if not self._text:
            return ZERO_VERSION
        return self._text.rstrip("\n")


def parse_version(text: str) -> Version:
    """Convert a string into a Version.

    Raises:
        MalformedInputError: If text does not contain a 0.0.0 style number.
    """
    if VERSION_PATTERN.search(text) is None:
        raise MalformedInputError(f"version {text!r} does not match 0.0.0 pattern")
    return Version(text)
