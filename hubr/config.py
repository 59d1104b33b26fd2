# Copyright (c) 2026 Mark Ferrell. MIT License.
"""Settings read from the process environment.

Settings are built once by the CLI and passed explicitly to whatever needs
them, so tests can supply their own defaults without touching os.environ.

Environment variables:
    HUBR_DEFAULT_ORG     Org used when an identifier omits one
    HUBR_TOKEN_CHAIN     Token sources, e.g. "env:GITHUB_API_TOKEN,env:TOKEN"
    HUBR_DEBUG           Enable debug logging (true/false)
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from hubr.errors import MalformedInputError

DEFAULT_TAG = "latest"
DEFAULT_WORKERS = 3
DEFAULT_TOKEN_CHAIN = "env:GITHUB_API_TOKEN,env:TOKEN,env:GITHUB_TOKEN"
DEFAULT_VERSION_FILE = "VERSION"


@dataclass(frozen=True)
class Settings:
    """Defaults shared by every subcommand."""

    default_org: str = ""
    default_tag: str = DEFAULT_TAG
    workers: int = DEFAULT_WORKERS
    token_chain: str = DEFAULT_TOKEN_CHAIN
    version_file: str = DEFAULT_VERSION_FILE
    debug: bool = False

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from environment variables.

        Args:
            environ: Mapping to read from. Defaults to os.environ.
        """
        env = os.environ if environ is None else environ
        return cls(
            default_org=env.get("HUBR_DEFAULT_ORG", ""),
            token_chain=env.get("HUBR_TOKEN_CHAIN", "") or DEFAULT_TOKEN_CHAIN,
            debug=env.get("HUBR_DEBUG", "false").lower() == "true",
        )


def resolve_token(settings: Settings, environ: Mapping[str, str] | None = None) -> str:
    """Return the first token found in the settings' token chain.

    The chain takes the form "source:name,source:name". Only the "env" source
    is understood; it reads the named environment variable.

    Args:
        settings: Settings holding the chain.
        environ: Mapping to read from. Defaults to os.environ.

    Returns:
        The token, or an empty string if every source is empty.

    Raises:
        MalformedInputError: If an entry of the chain is not "env:<name>".

    Examples:
        >>> resolve_token(Settings(token_chain="env:A,env:B"), {"B": "tok"})
        'tok'
    """
    env = os.environ if environ is None else environ
    for entry in settings.token_chain.split(","):
        source, sep, name = entry.partition(":")
        if not sep or source != "env" or not name:
            raise MalformedInputError(f"invalid auth chain value: {entry}")
        token = env.get(name, "")
        if token:
            return token
    return ""
