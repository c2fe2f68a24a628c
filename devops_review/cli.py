"""
Command line entry point.

``changes`` prints the reviewable changes of the configured pull request;
``comment`` posts a comment to it. Connection settings and coordinates
come from the environment (see ``devops_review.config.Settings``).
"""

import argparse
import asyncio
import sys
from typing import List, Optional, TextIO

from devops_review.config import Settings, get_settings
from devops_review.services.devops_provider import DevOpsProviderService
from devops_review.utils.logging import get_logger, setup_logging


logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="devops-review",
        description="Retrieve pull request changes and post review comments.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    changes = subparsers.add_parser("changes", help="Print the reviewable changes of the pull request")
    changes.add_argument(
        "--full-content",
        action="store_true",
        help="Print full file content instead of diffs (overrides ENABLE_THROTTLE_MODE)",
    )

    comment = subparsers.add_parser("comment", help="Post a comment on the pull request")
    comment.add_argument("--content", required=True, help="Comment body")
    comment.add_argument("--header", default=None, help="Optional comment header")

    return parser


def build_provider(settings: Settings) -> tuple[DevOpsProviderService, str]:
    """Register the configured provider and return the registry and provider name."""
    provider = settings.devops_provider or DevOpsProviderService.detect_provider(settings.devops_org_url)
    registry = DevOpsProviderService()
    registry.register_service(provider, {
        "access_token": settings.devops_access_token,
        "organization_url": settings.devops_org_url,
        "max_retries": settings.max_retries,
        "diff_command": settings.diff_command,
    })
    return registry, provider


async def run_changes(settings: Settings, full_content: bool = False, out: TextIO = sys.stdout) -> int:
    registry, provider = build_provider(settings)
    changes = await registry.get_service(provider).get_pull_request_changes(
        settings.devops_project_name,
        settings.devops_repository_id,
        settings.devops_pr_id,
        settings.file_extension_list(),
        settings.binary_extension_list(),
        settings.enable_throttle_mode and not full_content,
        max_concurrency=settings.max_concurrency,
    )

    if not changes:
        print("No matching code changes found", file=out)
        return 0

    for change in changes:
        print(f"File: {change.path}", file=out)
        print(f"Change type: {change.change_type.value}", file=out)
        print(f"Content:\n{change.content}\n", file=out)
    return 0


async def run_comment(settings: Settings, content: str, header: Optional[str] = None, out: TextIO = sys.stdout) -> int:
    registry, provider = build_provider(settings)
    comment_id = await registry.get_service(provider).add_pull_request_comment(
        settings.devops_project_name,
        settings.devops_repository_id,
        settings.devops_pr_id,
        content,
        settings.comment_header if header is None else header,
    )
    print(comment_id, file=out)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point; returns the process exit status."""
    args = build_parser().parse_args(argv)

    try:
        settings = get_settings()
        setup_logging(settings.log_level.upper())

        if args.command == "changes":
            return asyncio.run(run_changes(settings, full_content=args.full_content))
        return asyncio.run(run_comment(settings, args.content, args.header))

    except Exception as e:
        logger.error(f"Unhandled error: {e}", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
