# Copyright (c) 2026 Mark Ferrell. MIT License.
"""Changelogs from the previous release up to a commit.

The log is built in two passes over history.

First, a mainline of commits is calculated. If a parent of a merge commit has
the same version as the merge commit, it is considered mainline. Parents with
another version are branch work that was merged in.

Second, the log is constructed from the commit messages of the mainline, up to
and not including the previous release commit. Branches met on the way are
walked back to the mainline and their messages spliced into the log.

Note: deciding the mainline from the version file alone is a heuristic and
does not attempt general graph analysis.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from hubr.frontier import Frontier

if TYPE_CHECKING:
    from hubr.vcs import Commit
    from hubr.versioner import Versioner

logger = logging.getLogger(__name__)


def mainline(versioner: Versioner, commit: Commit) -> set[str]:
    """Return the hashes of the commits considered the mainline from commit.

    Every visited commit is mainline. Single parent history is always
    followed; merge commits are only followed into parents that carry the
    same version as the merge.

    Args:
        versioner: Source of commits and versions.
        commit: Where to start, usually HEAD.

    Returns:
        Set of commit hashes.

    Raises:
        MalformedInputError: If a version file cannot be parsed.
    """
    repo = versioner.repo
    frontier = Frontier([commit])
    found: set[str] = set()

    for c in frontier:
        if c.num_parents == 0:
            found.add(c.sha)
            continue

        version = versioner.at(c)
        for parent in repo.parents(c):
            if c.num_parents > 1 and versioner.at(parent) != version:
                logger.debug("mainline: %s leaves %s off the mainline", c, parent)
                continue
            frontier.push(parent)
        found.add(c.sha)

    return found


def log_main(versioner: Versioner, commit: Commit, main: set[str]) -> list[str]:
    """Return the changelog messages from commit along the mainline main.

    Walking stops at the previous release: the first single parent commit
    whose version differs from its parent. That commit is not included.

    Args:
        versioner: Source of commits and versions.
        commit: Where to start, usually HEAD.
        main: Mainline hashes as returned by :func:`mainline`.

    Returns:
        Commit messages in the order they were found.
    """
    repo = versioner.repo
    frontier = Frontier([commit])
    messages: list[str] = []

    for c in frontier:
        if c.num_parents == 0:
            messages.append(c.message)
        elif c.num_parents == 1:
            parent = repo.parents(c)[0]
            if versioner.at(c) != versioner.at(parent):
                logger.debug("log: %s is the previous release", c)
                continue
            messages.append(c.message)
            frontier.push(parent)
        else:
            messages.append(c.message)
            for parent in repo.parents(c):
                if parent.sha in main:
                    frontier.push(parent)
                else:
                    messages.extend(log_branch(versioner, parent, main))

    return messages


def log_branch(versioner: Versioner, commit: Commit, main: set[str]) -> list[str]:
    """Return every commit message on a branch from commit back to main."""
    repo = versioner.repo
    frontier = Frontier([commit])
    messages: list[str] = []

    for c in frontier:
        if c.sha in main:
            continue
        messages.append(c.message)
        for parent in repo.parents(c):
            frontier.push(parent)

    return messages


def log_head(versioner: Versioner) -> list[str]:
    """Return the changelog from the previous release up to HEAD."""
    head = versioner.repo.head()
    return log_main(versioner, head, mainline(versioner, head))
