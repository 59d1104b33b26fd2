# Copyright (c) 2026 Mark Ferrell. MIT License.
"""Release management: tags, draft releases, assets and publishing.

A release is made in steps which can each be repeated safely:

1. ensure the tag exists and points to the release commit;
2. ensure a release exists for the tag, created as a draft;
3. upload any assets the release does not have yet;
4. publish the release, unless it should stay a draft.

A run that failed half way can simply be run again. Two first-time runs for
the same tag at the same moment can still race on creating the tag or the
release; there is no locking.

References:
    - Releases: https://docs.github.com/en/rest/releases/releases
    - Release assets: https://docs.github.com/en/rest/releases/assets
"""

from __future__ import annotations

import fnmatch
import logging
import os
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from hubr.config import DEFAULT_WORKERS
from hubr.errors import ConflictError, NoReleasesError, NotFoundError, UploadError
from hubr.ident import EDGE_TAG, LATEST_TAGS, Ident
from hubr.transfer import TransferPool

if TYPE_CHECKING:
    from github.GitRelease import GitRelease
    from github.GitReleaseAsset import GitReleaseAsset

    from hubr.github_api import GitHubAPI

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Asset:
    """A release asset and the release it belongs to."""

    name: str
    content_type: str
    size: int
    label: str
    id: int
    url: str
    tag: str
    ident: Ident


@dataclass
class ReleaseSpec:
    """Parameters to create or update a release.

    Attributes:
        ident: Repository and tag of the release.
        sha: Commit the tag must point to.
        name: Release name.
        body: Release description.
        draft: Leave the release as a draft instead of publishing it.
        prerelease: Mark a newly created release as a prerelease.
        full_path: Name uploaded assets by their full path, not the basename.
        uploads: Local files to upload as assets.
        workers: Number of parallel uploads.
    """

    ident: Ident
    sha: str
    name: str
    body: str = ""
    draft: bool = False
    prerelease: bool = False
    full_path: bool = False
    uploads: list[str] = field(default_factory=list)
    workers: int = DEFAULT_WORKERS

    @property
    def tag(self) -> str:
        return self.ident.tag

    def asset_name(self, path: str) -> str:
        """Return the asset name used for the local file at path."""
        return path if self.full_path else os.path.basename(path)


def get_release(api: GitHubAPI, tag: str) -> GitRelease:
    """Return the release for a tag.

    The tags 'latest' and 'stable' resolve to the latest full release and
    'edge' to the most recent release of any kind.

    Raises:
        NotFoundError: If there is no such release.
        NoReleasesError: For 'edge' when the repository has no releases.
    """
    if tag == EDGE_TAG:
        releases = api.list_releases()
        if not releases:
            raise NoReleasesError(api.repository)
        return releases[0]
    if tag in LATEST_TAGS:
        return api.get_latest_release()
    return api.get_release_by_tag(tag)


def get_draft(api: GitHubAPI, tag: str) -> GitRelease:
    """Return the first release with a matching tag.

    Unlike :func:`get_release` this also finds drafts; the returned release
    may or may not actually be a draft.

    Raises:
        NotFoundError: If no release has the tag.
    """
    for release in api.list_releases():
        if release.tag_name == tag:
            return release
    raise NotFoundError(f"{api.repository}@{tag}")


def glob_assets(api: GitHubAPI, ident: Ident) -> list[Asset]:
    """Return the assets of ident's release whose name matches ident's glob.

    Args:
        api: GitHubAPI for ident's repository.
        ident: Release and asset glob. An empty glob matches every asset.

    Returns:
        Matching assets; each ident is pinned to the concrete tag and asset.

    Raises:
        NotFoundError: If the release does not exist or nothing matches.
    """
    release = get_release(api, ident.tag)
    tag = release.tag_name
    pattern = ident.asset or "*"

    assets = []
    for a in api.list_assets(release):
        if not fnmatch.fnmatchcase(a.name, pattern):
            continue
        pinned = replace(ident, tag=tag, asset=a.name, dst=ident.dst or a.name)
        assets.append(
            Asset(
                name=a.name,
                content_type=a.content_type,
                size=a.size,
                label=a.label or "",
                id=a.id,
                url=a.url,
                tag=tag,
                ident=pinned,
            )
        )

    if not assets:
        raise NotFoundError(ident.with_tag(tag))
    return assets


def ensure_tag(api: GitHubAPI, tag_name: str, commit_sha: str, message: str = "") -> None:
    """Create a tag unless it already exists.

    If the tag exists and resolves to commit_sha nothing happens. An
    existing tag is never moved.

    Args:
        api: GitHubAPI instance for tag operations.
        tag_name: Name of the tag (e.g., 'v1.2.0').
        commit_sha: SHA of the commit the tag must point to.
        message: Annotation message. A lightweight tag is created if empty.

    Raises:
        ConflictError: If the tag exists and points to another commit.
        NotFoundError: If commit_sha is not known to GitHub.
    """
    existing = api.get_tag_commit_sha(tag_name)
    if existing is not None:
        if existing != commit_sha:
            raise ConflictError(f"tag {tag_name} exists on github and the sha is incorrect")
        logger.debug("Tag '%s' already at %s", tag_name, commit_sha[:7])
        return

    try:
        api.get_commit(commit_sha)
    except NotFoundError as e:
        raise NotFoundError(f"commit {commit_sha} (is it pushed?)") from e

    logger.info("Creating tag '%s' at commit %s", tag_name, commit_sha[:7])
    api.create_tag(tag_name, commit_sha, message)


def ensure_draft(api: GitHubAPI, spec: ReleaseSpec) -> GitRelease:
    """Return the release for spec's tag, creating a draft if there is none.

    An existing release is returned as it is, whatever its draft or
    prerelease state.
    """
    try:
        return get_draft(api, spec.tag)
    except NotFoundError:
        pass

    logger.info("Creating draft release '%s'", spec.tag)
    return api.create_release(
        spec.tag,
        name=spec.name,
        body=spec.body,
        draft=True,
        prerelease=spec.prerelease,
    )


def upload(
    api: GitHubAPI,
    release: GitRelease,
    existing: list[GitReleaseAsset],
    name: str,
    path: str,
) -> None:
    """Upload path as asset name unless the release already has it.

    Don't call this directly, it is the job run by :func:`upload_assets`.

    Raises:
        ConflictError: If an asset of the same name but another size exists.
    """
    size = os.stat(path).st_size
    for asset in existing:
        if asset.name != name:
            continue
        if asset.size != size:
            raise ConflictError(
                f"release asset {release.tag_name} {name} exists and is a different size to {path}"
            )
        logger.debug("Asset '%s' already uploaded", name)
        return

    logger.info("uploading %s", path)
    api.upload_asset(release, path, name)


def upload_assets(api: GitHubAPI, release: GitRelease, spec: ReleaseSpec) -> None:
    """Upload spec's files to release in parallel.

    Raises:
        UploadError: If any upload failed, carrying every error.
    """
    if not spec.uploads:
        return

    existing = api.list_assets(release)
    pool = TransferPool(lambda name, path: upload(api, release, existing, name, path), spec.workers)
    for path in spec.uploads:
        pool.enqueue(spec.asset_name(path), path)

    errors = pool.drain()
    if errors:
        for error in errors:
            logger.error("%s", error)
        raise UploadError("uploads failed", errors)


def publish_release(api: GitHubAPI, tag: str) -> None:
    """Publish the release for tag. Nothing happens if it is not a draft.

    Raises:
        NotFoundError: If there is no release for tag.
    """
    release = get_draft(api, tag)
    if not release.draft:
        logger.debug("Release '%s' already published", tag)
        return
    api.publish_release(release)


def release(api: GitHubAPI, spec: ReleaseSpec) -> None:
    """Make the release described by spec.

    A tag is created if one does not exist. A release is created if one does
    not exist. Files listed in uploads are uploaded. The release is published
    unless spec.draft is set.

    Raises:
        ConflictError: If the tag or an asset exists with other content.
        UploadError: If any upload failed.
    """
    ensure_tag(api, spec.tag, spec.sha, f"release {spec.name}")
    draft = ensure_draft(api, spec)
    upload_assets(api, draft, spec)

    if spec.draft:
        logger.info("%s %s draft release updated", spec.ident.repo, spec.tag)
        return

    publish_release(api, spec.tag)
    logger.info("%s released!", spec.ident)
