# Copyright (c) 2026 Mark Ferrell. MIT License.
"""GitHub API wrapper for tag, release and release asset operations.

Responses with status 404 are raised as :class:`~hubr.errors.NotFoundError`;
every other ``GithubException`` is passed through unchanged.

References:
    - GitHub REST API: https://docs.github.com/en/rest
    - PyGithub Documentation: https://pygithub.readthedocs.io/
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import IO, TYPE_CHECKING

import requests
from github import Auth, Github
from github.GithubException import GithubException

from hubr.errors import NotFoundError

if TYPE_CHECKING:
    from github.Commit import Commit
    from github.GitRelease import GitRelease
    from github.GitReleaseAsset import GitReleaseAsset

# Chunk size used when streaming asset downloads.
DOWNLOAD_CHUNK_SIZE = 64 * 1024


@contextmanager
def not_found_as(what: object) -> Iterator[None]:
    """Raise NotFoundError(what) for a 404 GithubException inside the block."""
    try:
        yield
    except GithubException as e:
        if e.status == 404:
            raise NotFoundError(what) from e
        raise


class GitHubAPI:
    """Wrapper around PyGithub for one repository.

    The token is resolved by the caller, see :func:`hubr.config.resolve_token`.

    References:
        - Authentication: https://docs.github.com/en/rest/authentication
    """

    def __init__(
        self,
        token: str | None = None,
        repository: str | None = None,
        github: Github | None = None,
    ) -> None:
        """Initialize the GitHub API client.

        Args:
            token: GitHub token for authentication.
            repository: Repository in 'owner/repo' format.
            github: An existing client to share, see :meth:`for_repository`.

        Raises:
            ValueError: If no token or repository is available.

        References:
            - Get a repository: https://docs.github.com/en/rest/repos/repos#get-a-repository
        """
        self._token = token or ""
        self._repository = repository or ""

        if not self._token:
            raise ValueError("GitHub token is required. Pass it as the token parameter.")
        if not self._repository:
            raise ValueError("Repository is required. Pass it as <org>/<repo>.")

        self._github = github or Github(auth=Auth.Token(self._token))
        self._repo = self._github.get_repo(self._repository)

    @property
    def repository(self) -> str:
        return self._repository

    def for_repository(self, repository: str) -> GitHubAPI:
        """Return an API for another repository sharing this client."""
        if repository == self._repository:
            return self
        return GitHubAPI(token=self._token, repository=repository, github=self._github)

    def list_tags(self) -> list[str]:
        """List the names of all tags in the repository.

        References:
            - List repository tags: https://docs.github.com/en/rest/repos/repos#list-repository-tags
        """
        return [tag.name for tag in self._repo.get_tags()]

    def get_tag_commit_sha(self, tag_name: str) -> str | None:
        """Get the commit SHA that a tag points to.

        Annotated tags are dereferenced to the commit they tag.

        Args:
            tag_name: Name of the tag.

        Returns:
            Commit SHA string, or None if tag doesn't exist.

        References:
            - Get a reference: https://docs.github.com/en/rest/git/refs#get-a-reference
            - Get a tag: https://docs.github.com/en/rest/git/tags#get-a-tag
        """
        try:
            ref = self._repo.get_git_ref(f"tags/{tag_name}")
        except GithubException as e:
            if e.status == 404:
                return None
            raise

        # Handle annotated tags (need to dereference)
        tag_sha = ref.object.sha
        if ref.object.type == "tag":
            return self._repo.get_git_tag(tag_sha).object.sha
        return tag_sha

    def get_commit(self, sha: str) -> Commit:
        """Get a commit by SHA.

        Raises:
            NotFoundError: If the commit is unknown to GitHub. GitHub answers
                422 rather than 404 for a well-formed but unknown SHA.

        References:
            - Get a commit: https://docs.github.com/en/rest/commits/commits#get-a-commit
        """
        try:
            with not_found_as(f"commit {sha}"):
                return self._repo.get_commit(sha)
        except GithubException as e:
            if e.status == 422:
                raise NotFoundError(f"commit {sha}") from e
            raise

    def create_tag(self, tag_name: str, commit_sha: str, message: str = "") -> None:
        """Create a tag pointing to a commit.

        An annotated tag object is created when a message is given, otherwise
        the tag is a lightweight reference to the commit.

        Args:
            tag_name: Name of the tag to create (e.g., 'v1.2.0').
            commit_sha: SHA of the commit to tag.
            message: Tag annotation message.

        Raises:
            GithubException: If tag creation fails.

        References:
            - Create a tag object: https://docs.github.com/en/rest/git/tags#create-a-tag-object
            - Create a reference: https://docs.github.com/en/rest/git/refs#create-a-reference
        """
        sha = commit_sha
        if message:
            tag_object = self._repo.create_git_tag(
                tag=tag_name,
                message=message,
                object=commit_sha,
                type="commit",
            )
            sha = tag_object.sha

        self._repo.create_git_ref(ref=f"refs/tags/{tag_name}", sha=sha)

    def list_releases(self) -> list[GitRelease]:
        """List releases, newest first, drafts included.

        References:
            - List releases: https://docs.github.com/en/rest/releases/releases#list-releases
        """
        return list(self._repo.get_releases())

    def get_release_by_tag(self, tag_name: str) -> GitRelease:
        """Get a published release by tag name.

        Raises:
            NotFoundError: If there is no release for the tag.

        References:
            - Get a release by tag name: https://docs.github.com/en/rest/releases/releases#get-a-release-by-tag-name
        """
        with not_found_as(f"{self._repository}@{tag_name}"):
            return self._repo.get_release(tag_name)

    def get_latest_release(self) -> GitRelease:
        """Get the latest full release.

        Raises:
            NotFoundError: If the repository has no full release.

        References:
            - Get the latest release: https://docs.github.com/en/rest/releases/releases#get-the-latest-release
        """
        with not_found_as(f"{self._repository} latest release"):
            return self._repo.get_latest_release()

    def create_release(
        self,
        tag_name: str,
        name: str,
        body: str,
        draft: bool = True,
        prerelease: bool = False,
    ) -> GitRelease:
        """Create a release for an existing tag.

        References:
            - Create a release: https://docs.github.com/en/rest/releases/releases#create-a-release
        """
        return self._repo.create_git_release(
            tag=tag_name,
            name=name,
            message=body,
            draft=draft,
            prerelease=prerelease,
        )

    def publish_release(self, release: GitRelease) -> GitRelease:
        """Flip a draft release to published, keeping its other fields.

        References:
            - Update a release: https://docs.github.com/en/rest/releases/releases#update-a-release
        """
        return release.update_release(
            name=release.title or release.tag_name,
            message=release.body or "",
            draft=False,
            prerelease=release.prerelease,
        )

    def list_assets(self, release: GitRelease) -> list[GitReleaseAsset]:
        """List the assets of a release.

        References:
            - List release assets: https://docs.github.com/en/rest/releases/assets#list-release-assets
        """
        return list(release.get_assets())

    def upload_asset(self, release: GitRelease, path: str, name: str) -> GitReleaseAsset:
        """Upload a local file as a release asset named name.

        References:
            - Upload a release asset: https://docs.github.com/en/rest/releases/assets#upload-a-release-asset
        """
        return release.upload_asset(path, name=name)

    def download_asset(self, url: str, out: IO[bytes]) -> None:
        """Stream the content of the asset at its API url into out.

        GitHub redirects the request to storage; requests drops the
        Authorization header when following it.

        References:
            - Get a release asset: https://docs.github.com/en/rest/releases/assets#get-a-release-asset
        """
        headers = {
            "Accept": "application/octet-stream",
            "Authorization": f"token {self._token}",
        }
        with requests.get(url, headers=headers, stream=True) as rsp:
            rsp.raise_for_status()
            for chunk in rsp.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                out.write(chunk)


def token_owner(token: str) -> str:
    """Return the login of the user owning token.

    References:
        - Get the authenticated user: https://docs.github.com/en/rest/users/users#get-the-authenticated-user
    """
    return Github(auth=Auth.Token(token)).get_user().login
