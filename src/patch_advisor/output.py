"""
Output

Renders listings and marking results as rich tables, XML or JSON.
"""

from __future__ import annotations

import json
import xml.etree.ElementTree as ET
from collections.abc import Iterable
from typing import Any, Optional

from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from .config import Settings
from .listing import PatchCheckSummary, PatchListing, PatchRow, UpdateOverview
from .marking import IssueState, MarkingReport
from .matcher import MatchResult
from .models import INTERACTIVE_LABELS, InteractiveFlag, PatchRecord, ResKind
from .updates import UpdateCandidate

NO_FLAGS = "---"


def interactive_flags_label(patch: PatchRecord) -> str:
    """Comma separated interactive flags of a patch, '---' if none."""
    flags = patch.interactive_flags
    if not flags:
        return NO_FLAGS
    return ",".join(label for flag, label in INTERACTIVE_LABELS if flag in flags)


def match_result_to_dict(result: MatchResult) -> dict[str, Any]:
    return {
        "matches": [
            {
                "type": m.ref_type,
                "id": m.ref_id,
                "patch": m.patch.name,
                "category": m.patch.category,
                "severity": m.patch.severity,
                "interactive": interactive_flags_label(m.patch),
                "status": m.status.xml_label,
            }
            for m in result.matches
        ],
        "description_matches": [
            {
                "patch": m.patch.name,
                "category": m.patch.category,
                "severity": m.patch.severity,
                "interactive": interactive_flags_label(m.patch),
                "summary": m.patch.summary,
            }
            for m in result.fallback
        ],
    }


def _patch_row_dict(row: PatchRow) -> dict[str, Any]:
    patch = row.patch
    return {
        "repository": patch.repository.as_user_string(),
        "name": patch.name,
        "edition": str(patch.edition),
        "category": patch.category,
        "severity": patch.severity,
        "interactive": interactive_flags_label(patch),
        "status": row.status.xml_label,
        "summary": patch.summary,
    }


def overview_to_dict(overview: UpdateOverview) -> dict[str, Any]:
    data: dict[str, Any] = {"blocked": overview.blocked}
    if overview.patches is not None:
        data["update_stack_patches"] = [_patch_row_dict(r) for r in overview.patches.update_stack]
        data["patches"] = [_patch_row_dict(r) for r in overview.patches.other]
    data.update(overview.updates.to_dict())
    return data


def marking_report_to_dict(report: MarkingReport) -> dict[str, Any]:
    return {
        "result": int(report.result),
        "issues": [
            {
                "type": o.issue.type,
                "id": o.issue.id,
                "state": o.state.value,
                "patches": [p.name for p in o.requested],
                "message": o.message,
                "feedback": [f.message for f in o.feedback],
            }
            for o in report.outcomes
        ],
    }


class UpdateStatusXml:
    """
    Builds the <update-status> document of list-updates and list-patches.

    When patches affecting the update stack are pending, only those are put
    in <update-list>; the other applicable patches go to
    <blocked-update-list> and no other kinds are listed.
    """

    VERSION = "0.6"

    def __init__(self, settings: Settings):
        self.ignore_flags = InteractiveFlag.NONE
        if settings.reboot_req_non_interactive:
            self.ignore_flags |= InteractiveFlag.REBOOT
        if settings.auto_agree_with_licenses:
            self.ignore_flags |= InteractiveFlag.LICENSE

    def render(self, overview: UpdateOverview) -> str:
        root = ET.Element("update-status", version=self.VERSION)
        update_list = ET.SubElement(root, "update-list")

        listing = overview.patches
        if listing is not None:
            rows = listing.update_stack if listing.affects_package_manager else listing.other
            for row in rows:
                self.patch_element(update_list, row)
            if listing.total == 0:
                ET.SubElement(update_list, "appletinfo", status="no-update-repositories")
            if listing.affects_package_manager and not listing.include_all:
                blocked = ET.SubElement(root, "blocked-update-list")
                for row in listing.other:
                    self.patch_element(blocked, row)

        if not overview.blocked:
            for candidates in overview.updates.candidates.values():
                for candidate in candidates:
                    self.candidate_element(update_list, candidate)

        ET.indent(root)
        return ET.tostring(root, encoding="unicode")

    def patch_element(self, parent: ET.Element, row: PatchRow) -> ET.Element:
        patch = row.patch
        element = ET.SubElement(
            parent,
            "update",
            name=patch.name,
            edition=str(patch.edition),
            arch=patch.arch,
            status=row.status.xml_label,
            category=patch.category,
            severity=patch.severity,
            pkgmanager=_bool(patch.restart_suggested),
            restart=_bool(patch.reboot_suggested),
            interactive=_bool(patch.interactive_when_ignoring(self.ignore_flags)),
            kind="patch",
        )
        self._details(element, patch.summary, patch.description, patch.license, patch.repository)
        return element

    def candidate_element(self, parent: ET.Element, candidate: UpdateCandidate) -> ET.Element:
        item = candidate.item
        attributes = {
            "name": item.name,
            "edition": candidate.new_edition,
            "arch": item.arch,
            "kind": str(item.kind),
        }
        if candidate.installed is not None:
            if candidate.old_edition != candidate.new_edition:
                attributes["edition-old"] = candidate.old_edition
            if candidate.old_arch != candidate.new_arch:
                attributes["arch-old"] = candidate.old_arch
        element = ET.SubElement(parent, "update", attributes)
        self._details(element, item.summary, item.description, item.license, item.repository)
        return element

    @staticmethod
    def _details(element, summary, description, license_text, repository) -> None:
        ET.SubElement(element, "summary").text = summary
        ET.SubElement(element, "description").text = description
        ET.SubElement(element, "license").text = license_text
        if repository.alias and not repository.alias.startswith("@"):
            ET.SubElement(element, "source", url=repository.url, alias=repository.alias)


def _bool(value: bool) -> str:
    return "true" if value else "false"


def issue_matches_xml(result: MatchResult) -> str:
    root = ET.Element("issue-matches")
    for m in result.matches:
        ET.SubElement(
            root,
            "issue",
            type=m.ref_type,
            id=m.ref_id,
            patch=m.patch.name,
            status=m.status.xml_label,
        )
    for m in result.fallback:
        ET.SubElement(root, "description-match", patch=m.patch.name).text = m.patch.summary
    ET.indent(root)
    return ET.tostring(root, encoding="unicode")


class Output:
    """
    Writes command results in the configured format.

    Args:
        settings: Output settings
        console: Console for results; created from the settings if omitted
        err_console: Console for warnings and errors
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        console: Optional[Console] = None,
        err_console: Optional[Console] = None,
    ):
        self.settings = settings or Settings()
        no_color = not self.settings.color
        self.console = console or Console(no_color=no_color)
        self.err_console = err_console or Console(stderr=True, no_color=no_color)

    @property
    def format(self) -> str:
        return self.settings.output_format

    def info(self, message: str) -> None:
        if self.format == "table":
            self.console.print(message, markup=False, highlight=False)

    def warning(self, message: str) -> None:
        self.err_console.print(f"Warning: {message}", markup=False, highlight=False)

    def error(self, message: str) -> None:
        self.err_console.print(f"Error: {message}", markup=False, highlight=False)

    def raw(self, text: str) -> None:
        self.console.print(text, markup=False, highlight=False, soft_wrap=True)

    def json(self, data: Any) -> None:
        self.raw(json.dumps(data, indent=2))

    # Helpers

    def highlight(self, value: str) -> Text:
        if value.lower() in self.settings.highlight:
            return Text(value, style="bold red")
        return Text(value)

    def interactive(self, patch: PatchRecord) -> Text:
        text = Text()
        label = interactive_flags_label(patch)
        for i, part in enumerate(label.split(",")):
            if i:
                text.append(",")
            text.append(part, style="bold" if part == "restart" else None)
        return text

    @staticmethod
    def _table(*columns: str) -> Table:
        table = Table(box=box.SIMPLE_HEAD, show_edge=False, pad_edge=False)
        for column in columns:
            table.add_column(column)
        return table

    # Commands

    def issue_matches(self, result: MatchResult) -> None:
        if self.format == "json":
            return self.json(match_result_to_dict(result))
        if self.format == "xml":
            return self.raw(issue_matches_xml(result))

        if result.empty:
            self.info("No matching issues found.")
            return

        if result.matches:
            if result.pass2:
                self.info("The following matches in issue numbers have been found:")
            table = self._table("Issue", "No.", "Patch", "Category", "Severity", "Interactive", "Status")
            for m in result.matches:
                table.add_row(
                    m.ref_type,
                    m.ref_id,
                    m.patch.name,
                    self.highlight(m.patch.category),
                    self.highlight(m.patch.severity),
                    self.interactive(m.patch),
                    m.status.label,
                )
            self.console.print(table)

        if result.fallback:
            self.info("Matches in patch descriptions of the following patches have been found:")
            table = self._table("Name", "Category", "Severity", "Interactive", "Summary")
            for m in result.fallback:
                table.add_row(
                    m.patch.name,
                    self.highlight(m.patch.category),
                    self.highlight(m.patch.severity),
                    self.interactive(m.patch),
                    m.patch.summary,
                )
            self.console.print(table)

    def patch_check(self, summary: PatchCheckSummary) -> None:
        if self.format == "json":
            return self.json(summary.to_dict())
        if self.format == "xml":
            root = ET.Element("patch-check", {k: str(v) for k, v in summary.to_dict().items()})
            return self.raw(ET.tostring(root, encoding="unicode"))

        if summary.locked:
            self.console.print(
                Text(_plural(summary.locked, "patch locked", "patches locked"), style="bold")
            )
        self.info(
            f"{_plural(summary.needed, 'patch needed', 'patches needed')} "
            f"({_plural(summary.security, 'security patch', 'security patches')})"
        )

    def updates(self, overview: UpdateOverview, best_effort: bool = False) -> None:
        if self.format == "json":
            return self.json(overview_to_dict(overview))
        if self.format == "xml":
            return self.raw(UpdateStatusXml(self.settings).render(overview))

        show_headings = len(overview.kinds) > 1
        if overview.patches is not None:
            if show_headings:
                self.info(ResKind.PATCH.updates_title)
            self.patches(overview.patches)
        if overview.blocked:
            return

        for kind, candidates in overview.updates.candidates.items():
            if show_headings:
                self.info(kind.updates_title)
            if not candidates:
                self.info("No updates found.")
                continue
            self.console.print(self._candidate_table(kind, candidates, best_effort))

    def patches(self, listing: PatchListing) -> None:
        if self.format != "table":
            return self.updates(UpdateOverview(patches=listing, kinds=[ResKind.PATCH]))

        if listing.empty:
            self.info("No updates found.")
            return

        if listing.update_stack:
            if listing.other:
                self.info("The following software management updates will be installed first:")
            self.console.print(self._patch_table(listing.update_stack))
        if listing.other:
            if listing.update_stack:
                self.info("The following updates are also available:")
            self.console.print(self._patch_table(listing.other))

    def marking(self, report: MarkingReport) -> None:
        if self.format == "json":
            return self.json(marking_report_to_dict(report))
        if self.format == "xml":
            root = ET.Element("marking", result=str(int(report.result)))
            for o in report.outcomes:
                ET.SubElement(root, "message", type=o.state.value).text = o.message
            ET.indent(root)
            return self.raw(ET.tostring(root, encoding="unicode"))

        for outcome in report.outcomes:
            for feedback in outcome.feedback:
                self.info(feedback.message)
            if outcome.state is IssueState.NOT_FOUND:
                self.info(outcome.message)
        if report.requested:
            self.info("The following patches are marked for installation:")
            self.info("  " + " ".join(p.name for p in report.requested))

    def _patch_table(self, rows: Iterable[PatchRow]) -> Table:
        table = self._table("Repository", "Name", "Category", "Severity", "Interactive", "Status", "Summary")
        for row in rows:
            patch = row.patch
            table.add_row(
                patch.repository.as_user_string(),
                patch.name,
                self.highlight(patch.category),
                self.highlight(patch.severity),
                self.interactive(patch),
                row.status.label,
                patch.summary,
            )
        return table

    def _candidate_table(
        self, kind: ResKind, candidates: list[UpdateCandidate], best_effort: bool
    ) -> Table:
        # the solver picks the repository on best effort
        columns = ["S"]
        if not best_effort:
            columns.append("Repository")
        columns.append("Name")
        # best effort does not know the final version or arch
        if not best_effort:
            if kind is ResKind.PACKAGE:
                columns.append("Current Version")
            columns.extend(["Available Version", "Arch"])

        table = self._table(*columns)
        for candidate in candidates:
            row = ["v"]
            if not best_effort:
                row.append(candidate.repository)
            row.append(candidate.name)
            if not best_effort:
                if kind is ResKind.PACKAGE:
                    row.append(candidate.old_edition or "")
                row.extend([candidate.new_edition, candidate.new_arch])
            table.add_row(*row)
        return table


def _plural(count: int, singular: str, plural: str) -> str:
    return f"{count} {singular if count == 1 else plural}"
