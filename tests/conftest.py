"""Shared pytest fixtures for the test suite."""

from __future__ import annotations

import itertools
from collections.abc import Generator
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import IO, Any
from unittest.mock import MagicMock, patch

import pytest
from github.GithubException import GithubException

from hubr.errors import NotFoundError
from hubr.vcs import Commit
from hubr.versioner import Versioner

SHA_A = "a" * 40
SHA_B = "b" * 40
SHA_C = "c" * 40


def make_commit(sha: str, *parents: str, message: str = "") -> Commit:
    """Create a commit with the given SHA and parent SHAs.

    This is a shared helper for tests that only need commit objects and no
    repository behind them.
    """
    return Commit(sha=sha, tree=f"tree-{sha}", parents=parents, message=message or f"{sha}\n")


def make_asset(name: str, size: int = 0, asset_id: int = 1) -> MagicMock:
    """Create a mock GitHub release asset object."""
    asset = MagicMock()
    asset.name = name
    asset.size = size
    asset.id = asset_id
    asset.content_type = "application/octet-stream"
    asset.label = ""
    asset.url = f"https://api.github.com/repos/acme/hubr/releases/assets/{asset_id}"
    return asset


def make_release(tag_name: str, draft: bool = False, prerelease: bool = False) -> MagicMock:
    """Create a mock GitHub release object."""
    release = MagicMock()
    release.tag_name = tag_name
    release.title = tag_name
    release.body = ""
    release.draft = draft
    release.prerelease = prerelease
    release.html_url = f"https://github.com/acme/hubr/releases/tag/{tag_name}"
    return release


class FakeRepository:
    """In-memory repository implementing the Repository protocol.

    Every commit has its own tree, holding a copy of its first parent's files
    plus whatever the commit changed.
    """

    version_file = "VERSION"

    def __init__(self) -> None:
        self.commits: dict[str, Commit] = {}
        self.trees: dict[str, dict[str, str]] = {}
        self.tags: dict[str, str] = {}
        self.head_sha = ""

    def add(
        self,
        sha: str,
        *parents: str,
        version: str | None = None,
        files: dict[str, str | None] | None = None,
        message: str = "",
    ) -> Commit:
        """Add a commit and move HEAD to it.

        Args:
            sha: Hash of the new commit.
            parents: Hashes of its parents, first parent first.
            version: New first line of the version file, if it changes.
            files: Files to write; a None value deletes the file.
            message: Commit message. Defaults to the hash and a newline.
        """
        tree = dict(self.trees[self.commits[parents[0]].tree]) if parents else {}
        if version is not None:
            tree[self.version_file] = f"{version}\n"
        for path, content in (files or {}).items():
            if content is None:
                tree.pop(path, None)
            else:
                tree[path] = content

        commit = make_commit(sha, *parents, message=message)
        self.trees[commit.tree] = tree
        self.commits[sha] = commit
        self.head_sha = sha
        return commit

    def checkout(self, sha: str) -> None:
        self.head_sha = sha

    def head(self) -> Commit:
        return self.commits[self.head_sha]

    def commit(self, sha: str) -> Commit:
        return self.commits[sha]

    def parents(self, commit: Commit) -> list[Commit]:
        return [self.commits[sha] for sha in commit.parents]

    def tree(self, commit: Commit) -> str:
        return commit.tree

    def file_contents(self, tree: str, path: str) -> str | None:
        return self.trees[tree].get(path)

    def diff(self, a: str, b: str) -> list[tuple[str, str]]:
        before, after = self.trees[a], self.trees[b]
        changes = []
        for path in sorted(before.keys() | after.keys()):
            if path not in before:
                changes.append(("", path))
            elif path not in after:
                changes.append((path, ""))
            elif before[path] != after[path]:
                changes.append((path, path))
        return changes

    def resolve_tag(self, name: str) -> Commit:
        if name not in self.tags:
            raise NotFoundError(f"tag {name}")
        return self.commits[self.tags[name]]

    def root(self) -> Path:
        return Path(".")


@dataclass
class FakeAsset:
    """A release asset held by FakeGitHubAPI."""

    name: str
    content: bytes
    id: int
    url: str
    content_type: str = "application/octet-stream"
    label: str = ""

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass
class FakeRelease:
    """A release held by FakeGitHubAPI."""

    tag_name: str
    title: str
    body: str
    draft: bool
    prerelease: bool
    html_url: str
    created_at: datetime = datetime(2026, 1, 2, 3, 4, tzinfo=timezone.utc)
    assets: list[FakeAsset] = field(default_factory=list)


class FakeGitHubAPI:
    """Stateful stand-in for GitHubAPI, keeping tags, releases and assets.

    The created_* and uploaded lists record mutating calls so tests can check that
    repeating an operation does not repeat its side effects.
    """

    def __init__(self, repository: str = "acme/hubr", commits: set[str] | None = None) -> None:
        self.repository = repository
        self.commits = set(commits or ())
        self.tags: dict[str, str] = {}
        self.releases: list[FakeRelease] = []
        self.created_tags: list[str] = []
        self.created_releases: list[str] = []
        self.uploaded: list[str] = []
        self._ids = itertools.count(1)
        self._others: dict[str, FakeGitHubAPI] = {}

    def for_repository(self, repository: str) -> FakeGitHubAPI:
        if repository == self.repository:
            return self
        return self._others.setdefault(repository, FakeGitHubAPI(repository, self.commits))

    def list_tags(self) -> list[str]:
        return list(self.tags)

    def get_tag_commit_sha(self, tag_name: str) -> str | None:
        return self.tags.get(tag_name)

    def get_commit(self, sha: str) -> Any:
        if sha not in self.commits:
            raise NotFoundError(f"commit {sha}")
        return MagicMock(sha=sha)

    def create_tag(self, tag_name: str, commit_sha: str, message: str = "") -> None:
        if tag_name in self.tags:
            raise GithubException(422, {"message": "Reference already exists"}, None)
        self.tags[tag_name] = commit_sha
        self.created_tags.append(tag_name)

    def list_releases(self) -> list[FakeRelease]:
        return list(self.releases)

    def get_release_by_tag(self, tag_name: str) -> FakeRelease:
        for release in self.releases:
            if release.tag_name == tag_name and not release.draft:
                return release
        raise NotFoundError(f"{self.repository}@{tag_name}")

    def get_latest_release(self) -> FakeRelease:
        for release in self.releases:
            if not release.draft and not release.prerelease:
                return release
        raise NotFoundError(f"{self.repository} latest release")

    def create_release(
        self,
        tag_name: str,
        name: str,
        body: str,
        draft: bool = True,
        prerelease: bool = False,
    ) -> FakeRelease:
        release = FakeRelease(
            tag_name=tag_name,
            title=name,
            body=body,
            draft=draft,
            prerelease=prerelease,
            html_url=f"https://github.com/{self.repository}/releases/tag/{tag_name}",
        )
        self.releases.insert(0, release)
        self.created_releases.append(tag_name)
        return release

    def publish_release(self, release: FakeRelease) -> FakeRelease:
        release.draft = False
        return release

    def list_assets(self, release: FakeRelease) -> list[FakeAsset]:
        return list(release.assets)

    def upload_asset(self, release: FakeRelease, path: str, name: str) -> FakeAsset:
        with open(path, "rb") as f:
            content = f.read()
        asset_id = next(self._ids)
        asset = FakeAsset(
            name=name,
            content=content,
            id=asset_id,
            url=f"https://api.github.com/repos/{self.repository}/releases/assets/{asset_id}",
        )
        release.assets.append(asset)
        self.uploaded.append(name)
        return asset

    def add_asset(self, release: FakeRelease, name: str, content: bytes) -> FakeAsset:
        """Attach an asset to release without counting it as an upload."""
        asset_id = next(self._ids)
        asset = FakeAsset(
            name=name,
            content=content,
            id=asset_id,
            url=f"https://api.github.com/repos/{self.repository}/releases/assets/{asset_id}",
        )
        release.assets.append(asset)
        return asset

    def download_asset(self, url: str, out: IO[bytes]) -> None:
        for release in self.releases:
            for asset in release.assets:
                if asset.url == url:
                    out.write(asset.content)
                    return
        raise NotFoundError(url)


@pytest.fixture
def repo() -> FakeRepository:
    """Create an empty in-memory repository."""
    return FakeRepository()


@pytest.fixture
def versioner(repo: FakeRepository) -> Versioner:
    """Create a Versioner over the in-memory repository."""
    return Versioner(repo)


@pytest.fixture
def fake_github_api() -> FakeGitHubAPI:
    """Create a stateful fake GitHub API that knows SHA_A and SHA_B."""
    return FakeGitHubAPI(commits={SHA_A, SHA_B})


@pytest.fixture
def mock_github_api() -> MagicMock:
    """Create a mock GitHubAPI instance for unit tests."""
    mock_api = MagicMock()
    mock_api.repository = "acme/hubr"
    mock_api.list_tags.return_value = []
    mock_api.list_releases.return_value = []
    mock_api.list_assets.return_value = []
    mock_api.get_tag_commit_sha.return_value = None
    mock_api.create_tag.return_value = None
    return mock_api


@pytest.fixture
def mock_pygithub() -> Generator[dict[str, Any], None, None]:
    """Patch PyGithub for unit tests."""
    with patch("hubr.github_api.Github") as mock_github:
        mock_repo = MagicMock()
        mock_github.return_value.get_repo.return_value = mock_repo
        yield {"github": mock_github, "repo": mock_repo}


@pytest.fixture
def hubr_env(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set up hubr environment variables with a token and default org."""
    env_vars = {
        "GITHUB_API_TOKEN": "test-token",
        "HUBR_DEFAULT_ORG": "acme",
    }
    for key in ("TOKEN", "GITHUB_TOKEN", "HUBR_TOKEN_CHAIN", "HUBR_DEBUG"):
        monkeypatch.delenv(key, raising=False)
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


@pytest.fixture
def cli(
    hubr_env: dict[str, str], repo: FakeRepository, fake_github_api: FakeGitHubAPI
) -> Generator[tuple[FakeRepository, FakeGitHubAPI], None, None]:
    """Run the CLI against the in-memory repository and fake GitHub."""
    with (
        patch("hubr.main.GitRepository", return_value=repo),
        patch("hubr.main.GitHubAPI", return_value=fake_github_api),
    ):
        yield repo, fake_github_api
