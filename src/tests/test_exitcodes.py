"""
Tests for result codes.
"""

from itertools import product

import pytest

from patch_advisor.exitcodes import ResultCode


class TestResultCode:
    """Tests for ResultCode."""

    def test_values(self):
        """Test the exit code values."""
        assert ResultCode.OK == 0
        assert ResultCode.ERR_INVALID_ARGS == 3
        assert ResultCode.ERR_QUERY == 4
        assert ResultCode.INF_CAP_NOT_FOUND == 104

    def test_is_error(self):
        """Test informational codes are not errors."""
        assert ResultCode.ERR_BUG.is_error
        assert not ResultCode.OK.is_error
        assert not ResultCode.INF_CAP_NOT_FOUND.is_error

    @pytest.mark.parametrize(
        "first,second,expected",
        [
            (ResultCode.OK, ResultCode.INF_CAP_NOT_FOUND, ResultCode.INF_CAP_NOT_FOUND),
            (ResultCode.INF_CAP_NOT_FOUND, ResultCode.OK, ResultCode.INF_CAP_NOT_FOUND),
            (ResultCode.INF_CAP_NOT_FOUND, ResultCode.ERR_QUERY, ResultCode.ERR_QUERY),
            (ResultCode.ERR_QUERY, ResultCode.INF_CAP_NOT_FOUND, ResultCode.ERR_QUERY),
            (ResultCode.ERR_BUG, ResultCode.ERR_QUERY, ResultCode.ERR_BUG),
        ],
    )
    def test_merge(self, first, second, expected):
        """Test merging keeps the stronger result."""
        assert first.merge(second) is expected

    def test_merge_monotonic(self):
        """Test a merged result never drops below either input."""
        for first, second in product(ResultCode, repeat=2):
            merged = first.merge(second)
            assert merged in (first, second)
            assert merged.merge(first) is merged
            assert merged.merge(second) is merged
