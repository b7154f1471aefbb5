"""
Tests for issue filter parsing.
"""

from patch_advisor.issues import IssueRef, IssueSpecSet, split_issue_ids


class TestIssueRef:
    """Tests for IssueRef dataclass."""

    def test_wildcards(self):
        """Test any/specific properties."""
        issue = IssueRef("cve", None)
        assert issue.specific_type
        assert issue.any_id

        issue = IssueRef(None, "12345")
        assert issue.any_type
        assert issue.specific_id

    def test_empty_string_is_specific(self):
        """Test an empty id is not the wildcard."""
        assert IssueRef("cve", "").specific_id
        assert IssueRef("cve", "") != IssueRef("cve", None)

    def test_str(self):
        """Test string form."""
        assert str(IssueRef("bugzilla", "12345")) == "bugzilla#12345"
        assert str(IssueRef()) == "*#*"


class TestSplitIssueIds:
    """Tests for split_issue_ids function."""

    def test_split(self):
        """Test splitting comma separated ids."""
        assert split_issue_ids("1,2, 3") == ["1", "2", "3"]

    def test_empty_tokens_dropped(self):
        """Test consecutive commas are ignored."""
        assert split_issue_ids(",1,,2,") == ["1", "2"]

    def test_bare(self):
        """Test empty or missing values yield no ids."""
        assert split_issue_ids("") == []
        assert split_issue_ids(None) == []
        assert split_issue_ids(",") == []


class TestIssueSpecSet:
    """Tests for IssueSpecSet.from_options."""

    def test_no_options(self):
        """Test no options give an empty set."""
        issues = IssueSpecSet.from_options({})
        assert len(issues) == 0
        assert list(issues) == []

    def test_ids(self):
        """Test ids are typed by their option."""
        issues = IssueSpecSet.from_options({"cve": ["CVE-2024-0001,CVE-2024-0002"]})
        assert list(issues) == [
            IssueRef("cve", "CVE-2024-0001"),
            IssueRef("cve", "CVE-2024-0002"),
        ]

    def test_bare_option(self):
        """Test a bare option registers a wildcard id."""
        issues = IssueSpecSet.from_options({"bugzilla": [None]})
        assert list(issues) == [IssueRef("bugzilla", None)]
        assert issues.warnings == ()

    def test_bare_and_valued_option(self):
        """Test a bare option is dropped with a warning when ids are given."""
        issues = IssueSpecSet.from_options({"cve": ["", "CVE-2024-0001"]})
        assert list(issues) == [IssueRef("cve", "CVE-2024-0001")]
        assert IssueRef("cve", None) not in issues
        assert len(issues.warnings) == 1
        assert "--cve" in issues.warnings[0]

    def test_duplicates_merge(self):
        """Test duplicate ids and aliases collapse."""
        issues = IssueSpecSet.from_options(
            {
                "bugzilla": ["12345", "12345,67890"],
                "bz": ["12345"],
            }
        )
        assert len(issues) == 2
        assert IssueRef("bugzilla", "12345") in issues
        assert IssueRef("bugzilla", "67890") in issues

    def test_bare_on_alias_independent(self):
        """Test bare --bz is only dropped by ids given with --bz itself."""
        issues = IssueSpecSet.from_options({"bugzilla": ["12345"], "bz": [""]})
        assert IssueRef("bugzilla", None) in issues
        assert IssueRef("bugzilla", "12345") in issues
        assert issues.warnings == ()

    def test_any_tracker_and_cve_bare(self):
        """Test two bare options give two distinct wildcard predicates."""
        issues = IssueSpecSet.from_options({"issues": [""], "cve": [""]})
        assert list(issues) == [IssueRef(None, None), IssueRef("cve", None)]

    def test_iteration_sorted(self):
        """Test iteration does not depend on option order."""
        issues = IssueSpecSet.from_options({"cve": ["B,A"], "issues": ["x"]})
        assert list(issues) == [
            IssueRef(None, "x"),
            IssueRef("cve", "A"),
            IssueRef("cve", "B"),
        ]

    def test_unique_entries(self):
        """Test the set never holds duplicates."""
        issues = IssueSpecSet.from_options(
            {"issues": ["1,1,2"], "cve": ["1", "1"], "bz": ["1"], "bugzilla": ["1"]}
        )
        entries = list(issues)
        assert len(entries) == len(set(entries)) == 4
