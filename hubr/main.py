# Copyright (c) 2026 Mark Ferrell. MIT License.
"""Command line entry point for hubr.

hubr deals with GitHub tags, releases and release assets, and derives
versions and changelogs from a version file in the local git repository.

Environment Variables:
    GITHUB_API_TOKEN, TOKEN, GITHUB_TOKEN  GitHub token, first one set wins
    HUBR_DEFAULT_ORG                       Org used when an identifier has none
    HUBR_DEBUG                             Enable debug logging (true/false)

References:
    - GitHub REST API: https://docs.github.com/en/rest
"""

from __future__ import annotations

import argparse
import fnmatch
import logging
import os
import posixpath
import sys
from collections.abc import Callable
from typing import TextIO

import requests
from github.GithubException import GithubException

from hubr import __version__
from hubr.changes import changed_files
from hubr.config import Settings, resolve_token
from hubr.errors import HubrError, MalformedInputError, NotFoundError
from hubr.github_api import GitHubAPI, token_owner
from hubr.history import log_head
from hubr.ident import EDGE_TAG, LATEST_TAGS, Ident, parse_ident
from hubr.release import ReleaseSpec, get_release, glob_assets, release
from hubr.transfer import download_assets
from hubr.vcs import GitRepository
from hubr.version import parse_increment, parse_version
from hubr.versioner import Versioner, render_version_file

logger = logging.getLogger(__name__)

# Columns used by the short forms of the listings.
ASSET_COLUMNS = 3
TAG_COLUMNS = 5


class UsageError(MalformedInputError):
    """A subcommand was called with arguments it cannot use."""


def configure_logging(debug: bool) -> None:
    """Configure logging based on debug flag.

    Args:
        debug: If True, enable DEBUG level logging.
    """
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )


def read_args(args: list[str], stdin: TextIO | None = None) -> list[str]:
    """Return args with a "-" replaced by the lines of stdin.

    Raises:
        UsageError: If "-" is given more than once.
    """
    out: list[str] = []
    seen_stdin = False
    for arg in args:
        if arg != "-":
            out.append(arg.strip())
            continue
        if seen_stdin:
            raise UsageError("-: cannot read stdin more than once")
        seen_stdin = True
        out.extend(line.strip() for line in (stdin or sys.stdin) if line.strip())
    if not out:
        raise UsageError("at least one argument is required")
    return out


def _parse_ident(text: str, settings: Settings) -> Ident:
    try:
        return parse_ident(text, settings)
    except MalformedInputError as e:
        raise UsageError(str(e)) from e


def connect(settings: Settings, ident: Ident, api: GitHubAPI | None = None) -> GitHubAPI:
    """Return a GitHubAPI for ident's repository, reusing api's client if given."""
    if api is not None:
        return api.for_repository(ident.repository)
    token = resolve_token(settings)
    if not token:
        raise HubrError(f"auth chain failed: {settings.token_chain}")
    return GitHubAPI(token=token, repository=ident.repository)


def _print_columns(names: list[str], columns: int) -> None:
    for i in range(0, len(names), columns):
        print("\t".join(names[i : i + columns]))


def cmd_assets(args: argparse.Namespace, settings: Settings) -> None:
    """List release assets, three per line or one per line with -l."""
    idents = [_parse_ident(arg, settings) for arg in read_args(args.idents)]
    api = None
    for ident in idents:
        api = connect(settings, ident, api)
        r = get_release(api, ident.tag)
        if len(idents) > 1:
            print(f"{ident.with_tag(r.tag_name)}:")

        names = []
        for a in api.list_assets(r):
            if not fnmatch.fnmatchcase(a.name, ident.asset or "*"):
                continue
            if args.long:
                print(f"{a.name}\t{a.content_type}\t{a.size}\t{a.label or ''}")
            else:
                names.append(a.name)
        _print_columns(names, ASSET_COLUMNS)

        if len(idents) > 1:
            print()


def cmd_bump(args: argparse.Namespace, settings: Settings) -> None:
    """Print or write the next version and its changelog."""
    increment = parse_increment(args.increment)
    messages: list[str] = []
    last = ""

    if args.latest:
        ident = _parse_ident(args.latest, settings)
        r = get_release(connect(settings, ident), ident.tag)
        version = parse_version(r.tag_name)
        if not args.no_log:
            messages = [f"bumped from {ident.with_tag(str(version))}"]
    else:
        versioner = Versioner(GitRepository(), args.version_file)
        version = versioner.head()
        if not args.no_log:
            messages = log_head(versioner)
            last = versioner.last_log()

    version = version.bump(increment)
    if args.no_log:
        text = f"{version}\n"
    else:
        text = render_version_file(version, messages, last if args.write else "")

    if not args.write:
        sys.stdout.write(text)
        return

    path = GitRepository().root() / args.version_file
    path.write_text(text, encoding="utf-8")
    logger.info("%s written to %s", version, path)


def _download(args: argparse.Namespace, settings: Settings, directory: str | None, workers: int) -> None:
    idents = []
    for arg in read_args(args.idents):
        ident = _parse_ident(arg, settings)
        if not ident.asset:
            raise UsageError(f"failed to parse {arg}, does not match [<org>/]<repo>[@<tag>]:<asset>[:<dst>]")
        idents.append(ident)

    api = connect(settings, idents[0])
    assets = []
    for ident in idents:
        api = connect(settings, ident, api)
        assets.extend(glob_assets(api, ident))
    download_assets(api, assets, directory, workers)


def cmd_cat(args: argparse.Namespace, settings: Settings) -> None:
    """Write release assets to stdout, one at a time."""
    _download(args, settings, None, 1)


def cmd_get(args: argparse.Namespace, settings: Settings) -> None:
    """Download release assets into a directory."""
    _download(args, settings, args.dir, args.workers)


def cmd_now(args: argparse.Namespace, settings: Settings) -> None:
    """Succeed only if HEAD is a release commit."""
    versioner = Versioner(GitRepository(), args.version_file)
    if not versioner.is_release():
        raise HubrError("not a release")


def cmd_push(args: argparse.Namespace, settings: Settings) -> None:
    """Release the version of HEAD if HEAD is a release commit."""
    ident = _parse_ident(args.ident, settings)
    if ident.tag != settings.default_tag:
        raise UsageError(f"failed to parse {args.ident}, does not match [<org>/]<repo>")

    repo = GitRepository()
    versioner = Versioner(repo, args.version_file)
    if not versioner.is_release():
        logger.info("push: nop, head is not a release commit")
        return

    tag = str(versioner.head())
    spec = ReleaseSpec(
        ident=ident.with_tag(tag),
        sha=repo.head().sha,
        name=tag,
        body="\n".join(versioner.log_diff()),
        draft=args.draft,
        full_path=args.full_path,
        uploads=args.files,
        workers=args.workers,
    )
    release(connect(settings, spec.ident), spec)


def _read_body(body: str) -> str:
    if body == "-":
        return sys.stdin.read()
    if body.startswith("@"):
        with open(body[1:], encoding="utf-8") as f:
            return f.read()
    return body


def cmd_release(args: argparse.Namespace, settings: Settings) -> None:
    """Release a tag, creating the tag at --sha, the local tag or HEAD."""
    ident = _parse_ident(args.ident, settings)
    if ident.tag in LATEST_TAGS or ident.tag == EDGE_TAG:
        raise UsageError(f"failed to parse {args.ident}, does not match [<org>/]<repo>@<tag>")

    sha = args.sha
    if not sha:
        repo = GitRepository()
        try:
            sha = repo.resolve_tag(ident.tag).sha
        except NotFoundError:
            sha = repo.head().sha

    spec = ReleaseSpec(
        ident=ident,
        sha=sha,
        name=args.name or ident.tag,
        body=_read_body(args.body),
        draft=args.draft,
        prerelease=args.pre,
        full_path=args.full_path,
        uploads=args.files,
        workers=args.workers,
    )
    release(connect(settings, ident), spec)


def cmd_resolve(args: argparse.Namespace, settings: Settings) -> None:
    """Print the concrete tag (or web url) of releases such as latest."""
    api = None
    for arg in read_args(args.idents):
        ident = _parse_ident(arg, settings)
        api = connect(settings, ident, api)
        r = get_release(api, ident.tag)
        print(r.html_url if args.web else ident.with_tag(r.tag_name))


def cmd_tags(args: argparse.Namespace, settings: Settings) -> None:
    """List full release tags, or every tag with -a."""
    idents = [_parse_ident(arg, settings) for arg in read_args(args.idents)]
    api = None
    for ident in idents:
        api = connect(settings, ident, api)
        releases = {r.tag_name: r for r in api.list_releases()}

        if len(idents) > 1:
            print(f"{ident}:")

        names = []
        for tag in api.list_tags():
            r = releases.get(tag)
            if not args.all and (r is None or r.draft or r.prerelease):
                continue
            if args.long and r is not None:
                line = f"{tag}\trelease\t{r.created_at:%Y-%m-%d %H:%M %Z}"
                if r.prerelease:
                    line += "\tpre-release"
                if r.draft:
                    line += "\tdraft"
                print(line)
            elif args.long:
                print(f"{tag}\ttag")
            else:
                names.append(tag)
        _print_columns(names, TAG_COLUMNS)

        if len(idents) > 1:
            print()


def cmd_what(args: argparse.Namespace, settings: Settings) -> None:
    """List paths changed since the last release, or test named paths."""
    changed = changed_files(Versioner(GitRepository(), args.version_file))

    if not args.paths:
        for path in sorted(changed):
            print(path)
        return

    paths = [posixpath.normpath(path) for path in args.paths]
    if not args.all:
        if any(path in changed for path in paths):
            return
        raise HubrError("no changes detected")

    unchanged = [path for path in paths if path not in changed]
    if unchanged:
        raise HubrError(f"no changes detected: {', '.join(unchanged)}")


def cmd_who(args: argparse.Namespace, settings: Settings) -> None:
    """Print the owner of the GitHub token."""
    token = resolve_token(settings)
    if not token:
        raise HubrError(f"auth chain failed: {settings.token_chain}")
    print(token_owner(token))


def _add_version_file(parser: argparse.ArgumentParser, settings: Settings) -> None:
    parser.add_argument(
        "-v",
        "--version-file",
        default=settings.version_file,
        help=f"path to the version file in the repository (default: {settings.version_file})",
    )


def _add_release_flags(parser: argparse.ArgumentParser, settings: Settings) -> None:
    parser.add_argument("-d", "--draft", action="store_true", help="leave as draft; do not publish release")
    parser.add_argument(
        "-f",
        "--full-path",
        action="store_true",
        help="use the full file path for uploads (default basename only)",
    )
    parser.add_argument("-w", "--workers", type=int, default=settings.workers, help="number of upload workers")
    parser.add_argument("files", nargs="*", help="local release asset files to upload")


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    """Build the argument parser for every subcommand."""
    org = "[<org>/]" if settings.default_org else "<org>/"
    parser = argparse.ArgumentParser(
        prog="hubr",
        description="hubr deals with GitHub tags, releases and assets.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Identifiers take the form {org}<repo>[@<tag>][:<asset>][:<dest>].
The default tag is {settings.default_tag}; stable and edge are also allowed.
An argument "-" reads further arguments from standard input.
        """,
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("-V", "--version", action="version", version=f"hubr {__version__}")
    subs = parser.add_subparsers(dest="command", required=True, metavar="<cmd>")

    def sub(name: str, func: Callable[[argparse.Namespace, Settings], None], help: str) -> argparse.ArgumentParser:
        p = subs.add_parser(name, help=help, description=help)
        p.set_defaults(func=func, parser=p)
        return p

    p = sub("assets", cmd_assets, "list release assets")
    p.add_argument("-l", "--long", action="store_true", help="one per line, with description")
    p.add_argument("idents", nargs="+", metavar=f"{org}<repo>[@<tag>][:<asset>]")

    p = sub("bump", cmd_bump, "create a new version")
    p.add_argument("--latest", metavar=f"{org}<repo>", help="bump from the latest GitHub release")
    _add_version_file(p, settings)
    p.add_argument("-w", "--write", action="store_true", help="write to the version file (default stdout)")
    p.add_argument("-n", "--no-log", action="store_true", help="print the version only, not the log")
    p.add_argument("increment", choices=["major", "minor", "patch"])

    p = sub("cat", cmd_cat, "print release asset contents")
    p.add_argument("idents", nargs="+", metavar=f"{org}<repo>[@<tag>]:<asset>")

    p = sub("get", cmd_get, "download release assets")
    p.add_argument("-d", "--dir", default=".", help="output directory")
    p.add_argument("-w", "--workers", type=int, default=settings.workers, help="number of download workers")
    p.add_argument("idents", nargs="+", metavar=f"{org}<repo>[@<tag>]:<asset>[:<dest>]")

    p = sub("now", cmd_now, "test for a release commit")
    _add_version_file(p, settings)

    p = sub("push", cmd_push, "release using version file")
    _add_version_file(p, settings)
    p.add_argument("ident", metavar=f"{org}<repo>")
    _add_release_flags(p, settings)

    p = sub("release", cmd_release, "release by tag")
    p.add_argument("--name", default="", help="release name (defaults to tag)")
    p.add_argument("--body", default="", help="release body string, or @file, or - to read from stdin")
    p.add_argument("--sha", default="", help="sha of release commit (defaults to detect from tag or head)")
    p.add_argument("--pre", action="store_true", help="create prerelease")
    p.add_argument("ident", metavar=f"{org}<repo>@<tag>")
    _add_release_flags(p, settings)

    p = sub("resolve", cmd_resolve, "resolve a tag")
    p.add_argument("-w", "--web", action="store_true", help="print web urls")
    p.add_argument("idents", nargs="+", metavar=f"{org}<repo>[@<tag>]")

    p = sub("tags", cmd_tags, "list release tags")
    p.add_argument("-l", "--long", action="store_true", help="one per line, with description")
    p.add_argument("-a", "--all", action="store_true", help="list all including draft, pre-release and unreleased tags")
    p.add_argument("idents", nargs="+", metavar=f"{org}<repo>")

    p = sub("what", cmd_what, "list or check file changes")
    _add_version_file(p, settings)
    p.add_argument("--all", action="store_true", help="succeed only if all named files changed (default any)")
    p.add_argument("paths", nargs="*", metavar="<repo-file>")

    sub("who", cmd_who, "get token user")
    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the CLI."""
    settings = Settings.from_env(os.environ)
    parser = build_parser(settings)
    args = parser.parse_args(argv)
    configure_logging(args.debug or settings.debug)

    try:
        args.func(args, settings)
    except UsageError as e:
        args.parser.error(str(e))
    except (HubrError, GithubException, requests.RequestException) as e:
        logger.error("%s", e)
        sys.exit(1)


if __name__ == "__main__":  # pragma: no cover
    main()
