# Copyright (c) 2026 Mark Ferrell. MIT License.
"""Identifiers for repositories, releases and release assets.

An identifier takes the form ``[<org>/]<repo>[@<tag>][:<asset>][:<dst>]``:

    hubr                      latest release of <default org>/hubr
    acme/hubr@v1.2.0          a specific release
    acme/hubr@edge:*.zip      assets matching a glob
    acme/hubr:hubr-linux:hubr an asset saved under another name
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace

from hubr.config import DEFAULT_TAG, Settings
from hubr.errors import MalformedInputError

_ORG_PART = r"(?:([\w-]+)/)?"
_REPO_PART = r"([\w-]+)"
_TAG_PART = r"(?:@([\w.-]+))?"
_GLOB_PART = r"(?::([\w.*?\[\]^-]+))?"
_DST_PART = r"(?::([\w.-]+))?"

IDENT_PATTERN = re.compile(f"^{_ORG_PART}{_REPO_PART}{_TAG_PART}{_GLOB_PART}{_DST_PART}$", re.ASCII)
NO_GLOB_PATTERN = re.compile(r"^[\w.-]+$", re.ASCII)

# Tags that name a moving release rather than a concrete one.
LATEST_TAGS = frozenset({DEFAULT_TAG, "stable"})
EDGE_TAG = "edge"


@dataclass(frozen=True)
class Ident:
    """A repository, release tag, asset glob and destination file name."""

    org: str
    repo: str
    tag: str = DEFAULT_TAG
    asset: str = ""
    dst: str = ""

    @property
    def repository(self) -> str:
        """Return the repository in 'owner/repo' format."""
        return f"{self.org}/{self.repo}"

    @property
    def is_glob(self) -> bool:
        return bool(self.asset) and NO_GLOB_PATTERN.match(self.asset) is None

    def with_tag(self, tag: str) -> Ident:
        return replace(self, tag=tag)

    def __str__(self) -> str:
        text = self.repository
        if self.tag != DEFAULT_TAG:
            text += f"@{self.tag}"
        if self.asset:
            text += f":{self.asset}"
        if self.dst and self.dst != self.asset:
            text += f":{self.dst}"
        return text


def parse_ident(text: str, settings: Settings | None = None) -> Ident:
    """Parse an identifier string.

    Args:
        text: The identifier, e.g. 'acme/hubr@v1.0.0:*.zip'.
        settings: Supplies the default org and tag. Defaults to Settings().

    Returns:
        The parsed Ident. A non-glob asset without a destination is saved
        under its own name.

    Raises:
        MalformedInputError: If text does not match, no org is known, or a
            destination is given for a glob.

    Examples:
        >>> parse_ident("acme/hubr@v1.0.0:hubr-linux")
        Ident(org='acme', repo='hubr', tag='v1.0.0', asset='hubr-linux', dst='hubr-linux')
    """
    settings = settings or Settings()
    match = IDENT_PATTERN.match(text)
    if match is None:
        raise MalformedInputError(f"failed to parse {text}, does not match [<org>/]<repo>[@<tag>][:<asset>][:<dst>]")

    org, repo, tag, asset, dst = (group or "" for group in match.groups())
    org = org or settings.default_org
    if not org:
        raise MalformedInputError(f"{text} has no org and HUBR_DEFAULT_ORG is not set")

    ident = Ident(org=org, repo=repo, tag=tag or settings.default_tag, asset=asset, dst=dst)
    if ident.is_glob and dst:
        raise MalformedInputError(f"{text}: a destination is not allowed with a glob")
    if asset and not ident.is_glob and not dst:
        ident = replace(ident, dst=asset)
    return ident
