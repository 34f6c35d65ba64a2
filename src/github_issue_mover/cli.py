"""
Command-line interface for the GitHub issue migration tool.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import TYPE_CHECKING

from . import github_utils as ghu
from .config import DEFAULT_CONFIG_FILE, DEFAULT_PAUSE_SECONDS, Config, load_config
from .exceptions import ConfigurationError, MigrationError, RemoteAPIError
from .labels import provision_labels
from .links import LinkRewriter, build_repo_lookup, compile_reference_pattern
from .migrator import IssueMigrator, MigrationStats
from .pacing import WritePacer
from .state import StateStore
from .utils import setup_logging

if TYPE_CHECKING:
    from collections.abc import Sequence

logger: logging.Logger = logging.getLogger(__name__)


def parse_arguments(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Migrate issues from one GitHub repo to another",
        epilog="Re-run the same command after an error or interruption; already migrated issues and comments are skipped.",
    )

    # Exactly one action
    action = parser.add_mutually_exclusive_group(required=True)
    _ = action.add_argument("--repo", "-r", metavar="REPO", help="Migrate the open issues of configured repo REPO")
    _ = action.add_argument("--labels", "-l", action="store_true", help="Create the configured labels in the target repo")
    _ = action.add_argument(
        "--links", action="store_true", help="Rewrite issue references in migrated issues to the new numbers"
    )

    _ = parser.add_argument(
        "--config",
        "-c",
        default=DEFAULT_CONFIG_FILE,
        help=(
            "Configuration file holding mappings and auth information "
            f"(default: {DEFAULT_CONFIG_FILE} in the current working directory)"
        ),
    )
    _ = parser.add_argument("--debug", "-d", action="store_true", help="Output debug information")
    _ = parser.add_argument("--oneshot", action="store_true", help="Migrate only the first issue (for testing)")
    _ = parser.add_argument("--target", "-t", help='Target repo in the format "owner/repo"')
    _ = parser.add_argument("--user", help="GitHub user to use for the migration")
    _ = parser.add_argument("--token", help="GitHub auth token (default: config auth.token or GITHUB_TOKEN)")
    _ = parser.add_argument("--dry-run", "-n", action="store_true", help="Don't write, only show what would be done")
    _ = parser.add_argument(
        "--clean", action="store_true", help="Ignore the state of previous runs (it is overwritten on the first write)"
    )
    _ = parser.add_argument("--state", help="State file (default: config state or issues_processed.json)")
    _ = parser.add_argument(
        "--pause", type=float, help=f"Seconds to wait after each write (default: {DEFAULT_PAUSE_SECONDS:g})"
    )

    args = parser.parse_args(argv)
    if args.pause is not None and args.pause < 0:
        parser.error("--pause must not be negative")
    return args


def _print_remote_error(error: RemoteAPIError) -> None:
    print(f"ERROR: {error}")
    if error.rate_limit is not None:
        print(error.rate_limit.describe())
    print("Exit ... Please retry later")


def _print_summary(stats: MigrationStats) -> None:
    print(
        f"Issues: {stats.issues_created} created, {stats.issues_cached} already migrated, "
        f"{stats.issues_dry_run} would be created; "
        f"comments: {stats.comments_created} created, {stats.comments_cached} already migrated, "
        f"{stats.comments_dry_run} would be created"
    )
    if stats.pull_requests_skipped:
        print(f"Skipped {stats.pull_requests_skipped} pull requests")
    if stats.unmapped_labels:
        print(f"Unmapped labels (dropped): {', '.join(sorted(stats.unmapped_labels))}")
    if stats.unmapped_milestones:
        print(f"Unknown milestones (skipped): {', '.join(sorted(stats.unmapped_milestones))}")


def _pause(args: argparse.Namespace, config: Config) -> float:
    if args.pause is not None:
        return args.pause
    if config.pause is not None:
        return config.pause
    return DEFAULT_PAUSE_SECONDS


def run(args: argparse.Namespace) -> None:
    """Validate the configuration, then perform the requested action."""
    config = load_config(args.config)
    target_ref = config.resolve_target(args.target)
    token = ghu.get_token(args.token, config.token)
    store = StateStore(config.resolve_state_path(args.state), dry_run=args.dry_run, clean=args.clean)

    # Fail on configuration problems before the first remote call
    repo_config = config.repo(args.repo) if args.repo else None
    labels = config.required_labels() if args.labels else None
    if args.links:
        _ = compile_reference_pattern(config.link_pattern)
    state = None if args.labels else store.load()

    client = ghu.get_client(token)
    ghu.log_authenticated_user(client, args.user or config.user)
    target_repo = ghu.get_repo(client, target_ref)
    pacer = WritePacer(pause=_pause(args, config))

    if labels is not None:
        print(f"Creating labels in {target_ref}:")
        _ = provision_labels(target_repo, labels, dry_run=args.dry_run)
    elif repo_config is not None:
        source_repo = ghu.get_repo(client, repo_config.ref)
        migrator = IssueMigrator(
            source_repo,
            target_repo,
            repo_config,
            store,
            dry_run=args.dry_run,
            oneshot=args.oneshot,
            pacer=pacer,
            state=state,
        )
        _print_summary(migrator.migrate())
    else:
        rewriter = LinkRewriter(
            target_repo,
            store,
            build_repo_lookup(config.repos.values()),
            dry_run=args.dry_run,
            pacer=pacer,
            pattern=config.link_pattern,
            state=state,
        )
        stats = rewriter.rewrite_all()
        print(f"References: {stats.references_rewritten} rewritten in {stats.issues_updated} issues")


def main(argv: Sequence[str] | None = None) -> None:
    """Main entry point."""
    args = parse_arguments(argv)

    debug: bool = getattr(args, "debug", False)
    setup_logging(verbose=debug)

    try:
        run(args)
    except ConfigurationError as e:
        print(f">>> {e}")
        sys.exit(1)
    except RemoteAPIError as e:
        print()
        if debug:
            logger.debug("Remote API failure", exc_info=e)
        _print_remote_error(e)
        sys.exit(1)
    except MigrationError:
        logger.exception("Migration failed")
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nInterrupted. Progress is saved; run the same command again to resume.")
        sys.exit(130)
    except Exception:
        print()
        logger.exception("Migration failed")
        print("Exit ... Progress is saved; run the same command again to resume.")
        sys.exit(1)

    sys.exit(0)
