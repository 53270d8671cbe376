"""Tests for compat.core.errors module."""

from compat.core.errors import ErrorCode


class TestErrorCodeValues:
    """Exit codes are part of the CLI contract."""

    def test_values_are_stable(self) -> None:
        assert ErrorCode.OK == 0
        assert ErrorCode.USER_ERROR == 1
        assert ErrorCode.ENV_ERROR == 2
        assert ErrorCode.BUILD_ERROR == 3
        assert ErrorCode.NETWORK_ERROR == 4
        assert ErrorCode.NO_RELEASE == 5
        assert ErrorCode.CONNECTIVITY_ERROR == 6

    def test_values_are_unique(self) -> None:
        values = [code.value for code in ErrorCode]
        assert len(values) == len(set(values))
