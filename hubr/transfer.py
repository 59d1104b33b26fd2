# Copyright (c) 2026 Mark Ferrell. MIT License.
"""Parallel uploads and downloads of release assets.

A :class:`TransferPool` runs one job function on a fixed number of worker
threads. Failures do not stop the pool; :meth:`TransferPool.drain` hands back
every error so all failed assets can be reported at once.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from typing import TYPE_CHECKING, Any

import requests

from hubr.config import DEFAULT_WORKERS
from hubr.errors import DownloadError, HubrError

if TYPE_CHECKING:
    from hubr.github_api import GitHubAPI
    from hubr.release import Asset

logger = logging.getLogger(__name__)


class TransferPool:
    """Run job(*args) for every enqueued set of args on a bounded pool.

    Calling enqueue after drain is a programming error and raises
    RuntimeError.
    """

    def __init__(self, job: Callable[..., Any], workers: int = DEFAULT_WORKERS) -> None:
        if workers < 1:
            raise ValueError(f"workers must be at least 1, got {workers}")
        self._job = job
        self._executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="hubr-transfer")
        self._futures: list[Future[Any]] = []

    def enqueue(self, *args: Any) -> None:
        self._futures.append(self._executor.submit(self._job, *args))

    def drain(self) -> list[BaseException]:
        """Wait for every job to finish and return the errors of failed jobs.

        Returns:
            One exception per failed job, in no particular order. Empty if
            every job succeeded.
        """
        self._executor.shutdown(wait=True)
        errors = []
        for future in self._futures:
            error = future.exception()
            if error is not None:
                errors.append(error)
        return errors


def download(api: GitHubAPI, directory: str | None, asset: Asset) -> None:
    """Download asset into directory, or to stdout if directory is None.

    Don't call this directly, it is the job run by :func:`download_assets`.
    """
    logger.info("get %s", asset.ident)
    try:
        if directory is None:
            api.download_asset(asset.url, sys.stdout.buffer)
            return
        with open(os.path.join(directory, asset.ident.dst), "wb") as out:
            api.download_asset(asset.url, out)
    except (OSError, requests.RequestException) as e:
        raise HubrError(f"download {asset.ident}: {e}") from e


def download_assets(
    api: GitHubAPI,
    assets: list[Asset],
    directory: str | None,
    workers: int = DEFAULT_WORKERS,
) -> None:
    """Download assets in parallel.

    Args:
        api: GitHubAPI for the repository owning the assets.
        assets: Assets to download, see :func:`hubr.release.glob_assets`.
        directory: Output directory. None writes the content to stdout, in
            which case workers should be 1.
        workers: Number of parallel downloads.

    Raises:
        DownloadError: If any download failed, carrying every error.
    """
    pool = TransferPool(lambda asset: download(api, directory, asset), workers)
    for asset in assets:
        pool.enqueue(asset)

    errors = pool.drain()
    if errors:
        for error in errors:
            logger.error("%s", error)
        raise DownloadError("get failed", errors)
