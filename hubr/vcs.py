# Copyright (c) 2026 Mark Ferrell. MIT License.
"""Read-only access to a local git repository.

The traversals in hubr only need a handful of read operations, described by
the :class:`Repository` protocol. :class:`GitRepository` implements it by
running the ``git`` command line tool.

References:
    - git cat-file: https://git-scm.com/docs/git-cat-file
    - git diff-tree: https://git-scm.com/docs/git-diff-tree
"""

from __future__ import annotations

import logging
import subprocess
import weakref
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

from hubr.errors import GitError, NotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Commit:
    """A commit as read from the repository."""

    sha: str
    tree: str
    parents: tuple[str, ...]
    message: str

    @property
    def num_parents(self) -> int:
        return len(self.parents)

    def __str__(self) -> str:
        return self.sha[:7]


@runtime_checkable
class Repository(Protocol):
    """Read operations used by the history walks."""

    def head(self) -> Commit:
        """Return the commit at HEAD."""
        ...

    def commit(self, sha: str) -> Commit:
        """Return the commit with the given hash."""
        ...

    def parents(self, commit: Commit) -> list[Commit]:
        """Return the parents of commit, first parent first."""
        ...

    def tree(self, commit: Commit) -> str:
        """Return the snapshot (tree) id of commit."""
        ...

    def file_contents(self, tree: str, path: str) -> str | None:
        """Return the contents of path in tree, or None if it does not exist."""
        ...

    def diff(self, a: str, b: str) -> list[tuple[str, str]]:
        """Return (from_path, to_path) for each file that differs between trees.

        An added file has an empty from_path, a deleted file an empty to_path.
        """
        ...

    def resolve_tag(self, name: str) -> Commit:
        """Return the commit a local tag points to.

        Raises:
            NotFoundError: If the tag does not exist.
        """
        ...

    def root(self) -> Path:
        """Return the top level directory of the working tree."""
        ...


def _run_git(path: Path, args: list[str]) -> subprocess.CompletedProcess[str]:
    """Run ``git <args>`` in path and capture its output."""
    logger.debug("git %s", " ".join(args))
    return subprocess.run(
        ["git", *args],
        cwd=str(path),
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        encoding="utf-8",
        check=False,
    )


def _close(proc: subprocess.Popen[bytes]) -> None:
    if proc.stdin is not None:
        proc.stdin.close()
    proc.wait()


class ObjectReader:
    """Reads objects through one long running ``git cat-file --batch``.

    Walking history reads a commit and a version file per visited commit;
    starting a git process for each of those dominates on long histories.
    """

    def __init__(self, path: Path) -> None:
        logger.debug("git cat-file --batch")
        self._proc = subprocess.Popen(
            ["git", "cat-file", "--batch"],
            cwd=str(path),
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
        )
        self._finalizer = weakref.finalize(self, _close, self._proc)

    def read(self, name: str) -> tuple[str, bytes] | None:
        """Return the type and content of the object called name.

        Args:
            name: Any object name git accepts, e.g. a hash or ``<tree>:<path>``.

        Returns:
            ``(type, content)``, or None if there is no such object.

        Raises:
            GitError: If the reader is closed or git went away.
        """
        stdin, stdout = self._proc.stdin, self._proc.stdout
        if stdin is None or stdout is None or not self._finalizer.alive:
            raise GitError("git cat-file: reader is closed")
        try:
            stdin.write(name.encode("utf-8") + b"\n")
            stdin.flush()
        except BrokenPipeError as e:
            raise GitError("git cat-file: exited unexpectedly") from e

        header = stdout.readline()
        if not header:
            raise GitError("git cat-file: exited unexpectedly")
        if header.endswith((b" missing\n", b" ambiguous\n")):
            return None

        _, kind, size = header.split()
        # content is followed by a single newline
        content = stdout.read(int(size) + 1)[:-1]
        return kind.decode("ascii"), content

    def close(self) -> None:
        self._finalizer()


class GitRepository:
    """A :class:`Repository` backed by the ``git`` executable.

    Commits and files are read through an :class:`ObjectReader` started on
    first use and stopped by :meth:`close`. Commits are also cached by hash
    since history walks read the same commits more than once.
    """

    def __init__(self, path: str | Path = ".") -> None:
        self.path = Path(path)
        self._commits: dict[str, Commit] = {}
        self._objects: ObjectReader | None = None

    def close(self) -> None:
        """Stop the object reader, if one was started."""
        if self._objects is not None:
            self._objects.close()
            self._objects = None

    def run(self, *args: str) -> str:
        """Run a git command and return its stdout.

        Raises:
            GitError: If git exits non-zero.
        """
        proc = _run_git(self.path, list(args))
        if proc.returncode != 0:
            raise GitError(f"git {args[0]}: {(proc.stderr or proc.stdout).strip()}")
        return proc.stdout

    def read_object(self, name: str) -> tuple[str, bytes] | None:
        if self._objects is None:
            self._objects = ObjectReader(self.path)
        return self._objects.read(name)

    def root(self) -> Path:
        return Path(self.run("rev-parse", "--show-toplevel").strip())

    def head(self) -> Commit:
        return self.commit(self.run("rev-parse", "HEAD").strip())

    def commit(self, sha: str) -> Commit:
        cached = self._commits.get(sha)
        if cached is not None:
            return cached
        obj = self.read_object(sha)
        if obj is None or obj[0] != "commit":
            raise GitError(f"git cat-file: {sha} is not a commit")
        commit = parse_commit(sha, obj[1].decode("utf-8", errors="replace"))
        self._commits[sha] = commit
        return commit

    def parents(self, commit: Commit) -> list[Commit]:
        return [self.commit(sha) for sha in commit.parents]

    def tree(self, commit: Commit) -> str:
        return commit.tree

    def file_contents(self, tree: str, path: str) -> str | None:
        obj = self.read_object(f"{tree}:{path}")
        if obj is None or obj[0] != "blob":
            return None
        return obj[1].decode("utf-8")

    def diff(self, a: str, b: str) -> list[tuple[str, str]]:
        out = self.run("diff-tree", "-r", "-z", "--no-renames", "--name-status", a, b)
        return parse_name_status(out)

    def resolve_tag(self, name: str) -> Commit:
        proc = _run_git(self.path, ["rev-parse", "--verify", "--quiet", f"refs/tags/{name}^{{commit}}"])
        if proc.returncode != 0:
            raise NotFoundError(f"tag {name}")
        return self.commit(proc.stdout.strip())


def parse_commit(sha: str, raw: str) -> Commit:
    """Parse a raw commit object as printed by ``git cat-file``.

    Examples:
        >>> parse_commit("abc", "tree t1\\nparent p1\\nauthor a\\n\\nsubject\\n")
        Commit(sha='abc', tree='t1', parents=('p1',), message='subject\\n')
    """
    headers, _, message = raw.partition("\n\n")
    tree = ""
    parents: list[str] = []
    for line in headers.split("\n"):
        # continuation lines of multi-line headers such as gpgsig
        if line.startswith(" "):
            continue
        key, _, value = line.partition(" ")
        if key == "tree":
            tree = value
        elif key == "parent":
            parents.append(value)
    return Commit(sha=sha, tree=tree, parents=tuple(parents), message=message)


def parse_name_status(out: str) -> list[tuple[str, str]]:
    """Parse NUL separated ``git diff-tree --name-status -z`` output.

    Examples:
        >>> parse_name_status("M\\0a.txt\\0A\\0dir/b.txt\\0")
        [('a.txt', 'a.txt'), ('', 'dir/b.txt')]
    """
    fields = [field for field in out.split("\0") if field]
    changes: list[tuple[str, str]] = []
    for status, path in zip(fields[::2], fields[1::2]):
        if status.startswith("A"):
            changes.append(("", path))
        elif status.startswith("D"):
            changes.append((path, ""))
        else:
            changes.append((path, path))
    return changes
