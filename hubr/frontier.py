# Copyright (c) 2026 Mark Ferrell. MIT License.
"""Breadth-first work queue for commit graph traversals.

Walking history discovers new commits (parents) while earlier ones are still
being processed. A Frontier is a FIFO with a seen-set: commits pushed while it
is being iterated are delivered before iteration ends, and a commit hash is
only ever delivered once.

Example:
    frontier = Frontier([head])
    for commit in frontier:
        for parent in repo.parents(commit):
            frontier.push(parent)
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from hubr.vcs import Commit


class Frontier:
    """A single-use, deduplicating FIFO of commits.

    The seen-set belongs to this instance only; every traversal creates its
    own Frontier.
    """

    def __init__(self, commits: Iterable[Commit] = ()) -> None:
        self._queue: deque[Commit] = deque()
        self._seen: set[str] = set()
        self._exhausted = False
        for commit in commits:
            self.push(commit)

    def push(self, commit: Commit) -> None:
        """Enqueue commit unless its hash has been pushed before.

        Raises:
            RuntimeError: If the frontier has already been exhausted.
        """
        if self._exhausted:
            raise RuntimeError("push to an exhausted frontier")
        if commit.sha in self._seen:
            return
        self._seen.add(commit.sha)
        self._queue.append(commit)

    def __iter__(self) -> Iterator[Commit]:
        return self

    def __next__(self) -> Commit:
        if not self._queue:
            self._exhausted = True
            raise StopIteration
        return self._queue.popleft()

    def __len__(self) -> int:
        return len(self._queue)

    def __contains__(self, sha: object) -> bool:
        return sha in self._seen
