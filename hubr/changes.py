# Copyright (c) 2026 Mark Ferrell. MIT License.
"""Files and directories changed since the last release."""

from __future__ import annotations

import logging
import posixpath
from typing import TYPE_CHECKING

from hubr.errors import NoReleaseHistoryError
from hubr.frontier import Frontier

if TYPE_CHECKING:
    from hubr.vcs import Commit
    from hubr.versioner import Versioner

logger = logging.getLogger(__name__)


def boundary(versioner: Versioner) -> Commit:
    """Return the commit that HEAD's changes are measured from.

    The baseline is the version being released: the parent's version if HEAD
    is a release commit, otherwise HEAD's own version. History is walked
    breadth-first, never past a commit older than the baseline, and the last
    commit recorded wins.

    The last recorded commit depends on the breadth-first order across
    branches, so with several divergent branches the boundary may not be the
    oldest commit of the release epoch.

    Raises:
        NoReleaseHistoryError: If no commit could be recorded.
    """
    repo = versioner.repo
    head = repo.head()

    if versioner.is_release() and head.num_parents > 0:
        base = versioner.at(repo.parents(head)[0])
    else:
        base = versioner.at(head)
    logger.debug("changes: baseline version %s", base)

    frontier = Frontier([head])
    last: Commit | None = None
    for c in frontier:
        if c.num_parents == 1:
            if versioner.at(c).is_before(base):
                continue
            frontier.push(repo.parents(c)[0])
        elif c.num_parents > 1:
            for parent in repo.parents(c):
                if versioner.at(parent).is_before(base):
                    continue
                frontier.push(parent)
        last = c

    if last is None:
        raise NoReleaseHistoryError(f"cannot find release history, missing {versioner.path}?")
    return last


def changed_files(versioner: Versioner) -> set[str]:
    """Return the paths changed since the last release.

    Every changed file is included along with each of its parent directories.

    Raises:
        NoReleaseHistoryError: If no release boundary is found.
    """
    repo = versioner.repo
    head = repo.head()
    since = boundary(versioner)
    logger.debug("changes: diff %s against %s", head, since)

    paths: set[str] = set()
    for change in repo.diff(repo.tree(head), repo.tree(since)):
        for path in change:
            while path and path != "/":
                paths.add(path)
                path = posixpath.dirname(path)
    return paths
