"""
Tests for marking the fixes of issues and the patch requester.
"""

import pytest

from patch_advisor.exceptions import QueryError
from patch_advisor.exitcodes import ResultCode
from patch_advisor.filters import PatchFilter
from patch_advisor.issues import IssueRef, IssueSpecSet
from patch_advisor.marking import IssueMarkingOrchestrator, IssueOutcome, IssueState
from patch_advisor.models import InteractiveFlag, ValidationState
from patch_advisor.pool import ResourcePool
from patch_advisor.requester import FeedbackId, PatchRequester, RequestOptions


@pytest.fixture
def locked_pool(make_patch):
    """A single locked patch fixing bugzilla 12345."""
    return ResourcePool(
        patches=[make_patch("SUSE-2024-401", references=[("bugzilla", "12345")], locked=True)]
    )


class TestPatchRequester:
    """Tests for PatchRequester."""

    def test_install_needed(self, make_patch):
        """Test a needed patch is marked."""
        patch = make_patch("p")
        pool = ResourcePool(patches=[patch])
        requester = PatchRequester(pool)

        assert requester.install_patch(patch)
        assert pool.to_install == [patch]
        assert [f.id for f in requester.feedback] == [FeedbackId.SET_TO_INSTALL]

    def test_idempotent(self, make_patch):
        """Test requesting a patch twice has a single effect."""
        patch = make_patch("p")
        pool = ResourcePool(patches=[patch])
        requester = PatchRequester(pool)

        assert requester.install_patch(patch)
        assert requester.install_patch(patch)
        assert pool.to_install == [patch]
        assert len(requester.feedback) == 1

    def test_locked_needs_force(self, make_patch):
        """Test locked patches are refused without force."""
        patch = make_patch("p", locked=True)
        pool = ResourcePool(patches=[patch])

        requester = PatchRequester(pool)
        assert not requester.install_patch(patch)
        assert requester.feedback[0].id is FeedbackId.PATCH_UNWANTED
        assert "--force" in requester.feedback[0].message

        assert PatchRequester(pool, RequestOptions(force=True)).install_patch(patch)
        assert pool.to_install == [patch]

    def test_not_needed(self, make_patch):
        """Test applied patches are refused."""
        patch = make_patch("p", validation=ValidationState.SATISFIED)
        requester = PatchRequester(ResourcePool(patches=[patch]))
        assert not requester.install_patch(patch)
        assert requester.feedback[0].id is FeedbackId.PATCH_NOT_NEEDED

    def test_filter(self, make_patch):
        """Test the acceptance filter is applied."""
        patch = make_patch("p", category="optional")
        options = RequestOptions(patch_filter=PatchFilter.from_options(categories=["security"]))
        requester = PatchRequester(ResourcePool(patches=[patch]), options)

        assert not requester.install_patch(patch)
        assert requester.feedback[0].id is FeedbackId.PATCH_NOT_IN_FILTER

    def test_skip_interactive(self, make_patch):
        """Test interactive patches are skipped unless their flags are ignored."""
        patch = make_patch("p", flags=InteractiveFlag.LICENSE)
        pool = ResourcePool(patches=[patch])

        requester = PatchRequester(pool, RequestOptions(skip_interactive=True))
        assert not requester.install_patch(patch)
        assert requester.feedback[0].id is FeedbackId.PATCH_INTERACTIVE_SKIPPED

        options = RequestOptions(skip_interactive=True, ignore_flags=InteractiveFlag.LICENSE)
        assert PatchRequester(pool, options).install_patch(patch)

    def test_restart_alone_not_interactive(self, make_patch):
        """Test the update stack flag does not make a patch interactive."""
        patch = make_patch("p", restart_suggested=True)
        requester = PatchRequester(ResourcePool(patches=[patch]), RequestOptions(skip_interactive=True))
        assert requester.install_patch(patch)


class TestIssueMarkingOrchestrator:
    """Tests for IssueMarkingOrchestrator."""

    def test_locked_patch_attempted(self, locked_pool):
        """Test a locked fix is requested and found with force."""
        orchestrator = IssueMarkingOrchestrator(locked_pool, RequestOptions(force=True))
        report = orchestrator.run([IssueRef("bugzilla", "12345")])

        assert report.outcomes[0].state is IssueState.FOUND
        assert report.result is ResultCode.OK
        assert [p.name for p in locked_pool.to_install] == ["SUSE-2024-401"]

    def test_locked_patch_refused(self, locked_pool):
        """Test a refused request leaves the issue not found with feedback."""
        report = IssueMarkingOrchestrator(locked_pool).run([IssueRef("bugzilla", "12345")])

        outcome = report.outcomes[0]
        assert outcome.state is IssueState.NOT_FOUND
        assert [f.id for f in outcome.feedback] == [FeedbackId.PATCH_UNWANTED]
        assert report.result is ResultCode.INF_CAP_NOT_FOUND

    def test_found(self, sample_pool):
        """Test a needed fix is marked."""
        issues = IssueSpecSet.from_options({"cve": ["CVE-2024-0001"]})
        report = IssueMarkingOrchestrator(sample_pool).run(issues)

        assert report.result is ResultCode.OK
        assert [p.name for p in report.requested] == ["SUSE-2024-101"]
        assert report.not_found == []

    def test_not_found_message(self, sample_pool):
        """Test the tracker specific message of a missing fix."""
        report = IssueMarkingOrchestrator(sample_pool).run([IssueRef("cve", "CVE-9999-0000")])

        assert report.result is ResultCode.INF_CAP_NOT_FOUND
        assert report.not_found[0].message == (
            "Fix for CVE issue number CVE-9999-0000 was not found or is not needed."
        )

    def test_exact_ids_only(self, sample_pool):
        """Test partial ids do not select patches."""
        report = IssueMarkingOrchestrator(sample_pool).run([IssueRef("bugzilla", "122000")])
        assert report.outcomes[0].state is IssueState.NOT_FOUND
        assert sample_pool.to_install == []

    def test_result_monotonic(self, sample_pool):
        """Test a later success does not reset the not found result."""
        report = IssueMarkingOrchestrator(sample_pool).run(
            [IssueRef("bugzilla", "424242"), IssueRef("bugzilla", "1220002")]
        )

        assert [o.state for o in report.outcomes] == [IssueState.NOT_FOUND, IssueState.FOUND]
        assert report.result is ResultCode.INF_CAP_NOT_FOUND

    def test_same_patch_two_issues(self, sample_pool):
        """Test a patch fixing two issues is marked once and both are found."""
        report = IssueMarkingOrchestrator(sample_pool).run(
            [IssueRef("cve", "CVE-2024-0001"), IssueRef("bugzilla", "1220001")]
        )

        assert all(o.state is IssueState.FOUND for o in report.outcomes)
        assert [p.name for p in sample_pool.to_install] == ["SUSE-2024-101"]

    def test_typed_wildcard(self, sample_pool):
        """Test a bare --bugzilla marks every needed bugzilla fix."""
        report = IssueMarkingOrchestrator(sample_pool).run([IssueRef("bugzilla", None)])
        assert {p.name for p in report.requested} == {
            "SUSE-2024-101",
            "SUSE-2024-102",
            "SUSE-2024-103",
        }

    def test_query_error_aborts(self):
        """Test collaborator failures propagate."""

        class BrokenPool(ResourcePool):
            def query_patches(self, *args, **kwargs):
                raise QueryError("solver pool unavailable")

        with pytest.raises(QueryError):
            IssueMarkingOrchestrator(BrokenPool()).run([IssueRef("cve", "CVE-1")])


class TestIssueOutcome:
    """Tests for outcome messages."""

    def test_bugzilla_message(self):
        """Test the bugzilla message."""
        outcome = IssueOutcome(IssueRef("bugzilla", "12345"), IssueState.NOT_FOUND)
        assert outcome.message == "Fix for bugzilla issue number 12345 was not found or is not needed."

    def test_other_tracker_message(self):
        """Test the generic tracker message."""
        outcome = IssueOutcome(IssueRef("jira", "SEC-1"), IssueState.NOT_FOUND)
        assert outcome.message == "Fix for jira issue number SEC-1 was not found or is not needed."

    def test_any_tracker_message(self):
        """Test the message of an untyped issue."""
        outcome = IssueOutcome(IssueRef(None, "4711"), IssueState.NOT_FOUND)
        assert outcome.message == "Fix for issue number 4711 was not found or is not needed."
