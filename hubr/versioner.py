# Copyright (c) 2026 Mark Ferrell. MIT License.
"""Version information sifted from a local repository's version file.

The version file is a text file whose first line is the current version.
The remaining lines are a free-form changelog which grows at the top every
time the version is bumped.
"""

from __future__ import annotations

import difflib
import logging
from dataclasses import dataclass, field

from hubr.config import DEFAULT_VERSION_FILE
from hubr.errors import HubrError
from hubr.vcs import Commit, Repository
from hubr.version import Version, parse_version

logger = logging.getLogger(__name__)


@dataclass
class Versioner:
    """A repository paired with the path of its version file.

    Versions are cached by tree id: history walks ask for the version of the
    same commits many times.
    """

    repo: Repository
    path: str = DEFAULT_VERSION_FILE
    _versions: dict[str, Version] = field(default_factory=dict, init=False, repr=False, compare=False)

    def contents_at(self, commit: Commit) -> str | None:
        """Return the version file contents at commit, None if absent."""
        return self.repo.file_contents(self.repo.tree(commit), self.path)

    def at(self, commit: Commit) -> Version:
        """Return the version at commit.

        A commit without a version file has the empty version.

        Raises:
            MalformedInputError: If the first line holds no version number.
        """
        tree = self.repo.tree(commit)
        version = self._versions.get(tree)
        if version is None:
            contents = self.repo.file_contents(tree, self.path)
            version = Version() if contents is None else parse_version(contents.split("\n", 1)[0])
            self._versions[tree] = version
        return version

    def head(self) -> Version:
        """Return the version at HEAD."""
        return self.at(self.repo.head())

    def is_release(self) -> bool:
        """Return True if the version changed in the HEAD commit.

        A root commit counts as a release; a merge commit never does.
        """
        head = self.repo.head()
        if head.num_parents == 0:
            return True
        if head.num_parents > 1:
            return False
        parent = self.repo.parents(head)[0]
        current, previous = self.at(head), self.at(parent)
        logger.debug("%s at %s: %s -> %s", self.path, head.sha[:12], previous, current)
        return current != previous

    def last_log(self) -> str:
        """Return the committed content of the version file at HEAD."""
        return self.contents_at(self.repo.head()) or ""

    def log_diff(self) -> list[str]:
        """Return the blocks of lines added to the version file by HEAD.

        Raises:
            HubrError: If HEAD is a merge commit.
        """
        head = self.repo.head()
        if head.num_parents == 0:
            return []
        if head.num_parents > 1:
            raise HubrError("head is a merge commit; merge commits cannot be releases")

        parent = self.repo.parents(head)[0]
        before = (self.contents_at(parent) or "").splitlines(keepends=True)
        after = (self.contents_at(head) or "").splitlines(keepends=True)

        blocks = []
        matcher = difflib.SequenceMatcher(a=before, b=after, autojunk=False)
        for tag, _, _, j1, j2 in matcher.get_opcodes():
            if tag in ("insert", "replace"):
                blocks.append("".join(after[j1:j2]))
        return blocks


def render_version_file(version: Version, messages: list[str], last: str = "") -> str:
    """Render a new version file.

    The version comes first, followed by the messages as a bullet list and the
    previous content of the file, if any.

    Args:
        version: The new version.
        messages: Commit messages, one bullet each. Continuation lines are
            indented and blank lines dropped.
        last: Previous content of the version file, appended unchanged.

    Returns:
        The file content.

    Examples:
        >>> print(render_version_file(Version("v1.1.0"), ["fix\\n\\ndetail\\n"]), end="")
        v1.1.0
        <BLANKLINE>
        - fix
          detail
        <BLANKLINE>
    """
    lines = [str(version)]
    if messages:
        lines.append("")
        for message in messages:
            bullet = "- "
            for line in message.split("\n"):
                if not line:
                    continue
                lines.append(bullet + line)
                bullet = "  "
        lines.append("")
    out = "\n".join(lines) + "\n"
    if last:
        out += "\n" + last
    return out
