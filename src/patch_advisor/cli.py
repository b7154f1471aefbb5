#!/usr/bin/env python3
"""
patch-advisor command line

Usage:
    patch-advisor --snapshot system.yaml list-patches [--cve[=IDS]] [--bugzilla[=IDS]] [--all]
    patch-advisor --snapshot system.yaml list-updates [-t package] [--all] [--best-effort]
    patch-advisor --snapshot system.yaml patch-check [--updatestack-only]
    patch-advisor --snapshot system.yaml patch --cve CVE-2024-0001[,...] [--force]
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

import yaml

from .config import OUTPUT_FORMATS, Settings
from .exceptions import InvalidArgumentsError, PatchAdvisorError
from .exitcodes import ResultCode
from .filters import PatchFilter
from .issues import ISSUE_OPTIONS, IssueSpecSet
from .listing import list_updates, patch_check
from .marking import IssueMarkingOrchestrator
from .matcher import IssueMatcher, MatchMode
from .models import InteractiveFlag, ResKind
from .output import Output
from .pool import ResourcePool
from .requester import RequestOptions
from .snapshot import load_pool

logger = logging.getLogger(__name__)


def _add_issue_options(parser: argparse.ArgumentParser) -> None:
    issue_option = {"action": "append", "nargs": "?", "const": "", "metavar": "IDS"}
    parser.add_argument("--issues", "--issue", dest="issues",
                        help="Issues of any tracker, comma separated; any issue if omitted",
                        **issue_option)
    parser.add_argument("-b", "--bugzilla", dest="bugzilla",
                        help="Bugzilla issue numbers, comma separated",
                        **issue_option)
    parser.add_argument("--bz", dest="bz", help="Alias of --bugzilla", **issue_option)
    parser.add_argument("--cve", dest="cve", help="CVE numbers, comma separated",
                        **issue_option)


def _add_filter_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-g", "--category", action="append", metavar="CATEGORY",
                        help="Only patches of this category")
    parser.add_argument("--severity", action="append", metavar="SEVERITY",
                        help="Only patches of this severity")
    parser.add_argument("--date", metavar="YYYY-MM-DD",
                        help="Only patches issued up to this date")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="patch-advisor",
        description="List and select updates and the patches fixing tracked issues",
    )
    parser.add_argument("--config", "-c", help="YAML settings file")
    parser.add_argument("--snapshot", "-s", help="YAML or JSON snapshot of the system")
    parser.add_argument("--format", "-f", dest="output_format", choices=OUTPUT_FORMATS,
                        help="Output format (default: table)")
    parser.add_argument("--no-color", action="store_true", help="Disable colors")
    parser.add_argument("--verbose", "-v", action="count", default=0,
                        help="Increase log verbosity (-v info, -vv debug)")

    commands = parser.add_subparsers(dest="command", required=True)

    lp = commands.add_parser("list-patches", aliases=["lp"], help="List needed patches")
    lp.add_argument("--all", "-a", action="store_true", help="List all patches, not only needed ones")
    _add_issue_options(lp)
    _add_filter_options(lp)

    lu = commands.add_parser("list-updates", aliases=["lu"], help="List available updates")
    lu.add_argument("--type", "-t", dest="kinds", action="append",
                    choices=[k.value for k in ResKind],
                    help="Resource kind (default: package)")
    lu.add_argument("--all", "-a", action="store_true",
                    help="List all newer versions, not only installable ones")
    lu.add_argument("--best-effort", action="store_true",
                    help="Do not show repository and versions, the solver picks them")

    pchk = commands.add_parser("patch-check", aliases=["pchk"], help="Count needed patches")
    pchk.add_argument("--updatestack-only", action="store_true",
                      help="Only count patches affecting the update stack")

    patch = commands.add_parser("patch", help="Mark the fixes of issues for installation")
    _add_issue_options(patch)
    _add_filter_options(patch)
    patch.add_argument("--force", action="store_true", help="Also install locked patches")
    patch.add_argument("--skip-interactive", action="store_true",
                       help="Skip patches needing user interaction")
    patch.add_argument("-l", "--auto-agree-with-licenses", action="store_true",
                       help="Treat license confirmations as not interactive")

    return parser


def issue_specs(args: argparse.Namespace, out: Output) -> IssueSpecSet:
    issues = IssueSpecSet.from_options(
        {option: getattr(args, option, None) or [] for option in ISSUE_OPTIONS}
    )
    for warning in issues.warnings:
        out.warning(warning)
    return issues


def patch_filter(args: argparse.Namespace) -> PatchFilter:
    try:
        return PatchFilter.from_options(args.category, args.severity, args.date)
    except ValueError as e:
        raise InvalidArgumentsError(f"Invalid date '{args.date}': {e}") from e


def cmd_list_patches(args: argparse.Namespace, pool: ResourcePool, out: Output) -> ResultCode:
    if args.issues and (args.bugzilla or args.bz or args.cve):
        raise InvalidArgumentsError("--issues cannot be combined with --bugzilla, --bz or --cve")

    accept = patch_filter(args)
    issues = issue_specs(args, out)
    if len(issues):
        matcher = IssueMatcher(pool, MatchMode.LISTING, args.all, accept)
        out.issue_matches(matcher.match(issues))
    else:
        out.updates(list_updates(pool, [ResKind.PATCH], args.all, accept))
    return ResultCode.OK


def cmd_list_updates(args: argparse.Namespace, pool: ResourcePool, out: Output) -> ResultCode:
    kinds = [ResKind(k) for k in dict.fromkeys(args.kinds or [ResKind.PACKAGE.value])]
    out.updates(list_updates(pool, kinds, args.all), best_effort=args.best_effort)
    return ResultCode.OK


def cmd_patch_check(args: argparse.Namespace, pool: ResourcePool, out: Output) -> ResultCode:
    out.patch_check(patch_check(pool, args.updatestack_only))
    return ResultCode.OK


def cmd_patch(args: argparse.Namespace, pool: ResourcePool, out: Output) -> ResultCode:
    issues = issue_specs(args, out)
    if not len(issues):
        out.info("No issues specified, nothing to do.")
        return ResultCode.OK

    ignore = InteractiveFlag.NONE
    if out.settings.reboot_req_non_interactive:
        ignore |= InteractiveFlag.REBOOT
    if args.auto_agree_with_licenses or out.settings.auto_agree_with_licenses:
        ignore |= InteractiveFlag.LICENSE

    options = RequestOptions(
        force=args.force,
        skip_interactive=args.skip_interactive,
        patch_filter=patch_filter(args),
        ignore_flags=ignore,
    )
    report = IssueMarkingOrchestrator(pool, options).run(issues)
    out.marking(report)
    return report.result


COMMANDS = {
    "list-patches": cmd_list_patches,
    "lp": cmd_list_patches,
    "list-updates": cmd_list_updates,
    "lu": cmd_list_updates,
    "patch-check": cmd_patch_check,
    "pchk": cmd_patch_check,
    "patch": cmd_patch,
}


def configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def load_cli_settings(args: argparse.Namespace) -> Settings:
    settings = Settings.load(args.config)
    if args.snapshot:
        settings.snapshot = Path(args.snapshot)
    if args.output_format:
        settings.output_format = args.output_format
    if args.no_color:
        settings.color = False
    return settings


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        settings = load_cli_settings(args)
    except (FileNotFoundError, ValueError, TypeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return ResultCode.ERR_INVALID_ARGS
    except yaml.YAMLError as e:
        print(f"YAML Error: {e}", file=sys.stderr)
        return ResultCode.ERR_INVALID_ARGS

    out = Output(settings)
    problems = settings.validate()
    if problems:
        for problem in problems:
            out.error(problem)
        return ResultCode.ERR_INVALID_ARGS

    try:
        pool = load_pool(settings.snapshot)
        result = COMMANDS[args.command](args, pool, out)
    except InvalidArgumentsError as e:
        out.error(str(e))
        return ResultCode.ERR_INVALID_ARGS
    except PatchAdvisorError as e:
        logger.debug("Command aborted", exc_info=True)
        out.error(str(e))
        return ResultCode.ERR_QUERY

    return int(result)


if __name__ == "__main__":
    sys.exit(main())
