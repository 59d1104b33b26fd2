# Copyright (c) 2026 Mark Ferrell. MIT License.
"""hubr - GitHub releases from a version file - Core modules."""

__version__ = "0.1.0"

from hubr.github_api import GitHubAPI  # noqa: E402
from hubr.release import ReleaseSpec, release  # noqa: E402
from hubr.version import Increment, Version, parse_version  # noqa: E402
from hubr.versioner import Versioner  # noqa: E402

__all__ = ["GitHubAPI", "Increment", "ReleaseSpec", "Version", "Versioner", "parse_version", "release"]
