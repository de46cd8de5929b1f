"""
Unit tests for combining fan-out outcomes.
"""

import pytest

from service_gateway.app.domain import Failure, Success, combine_outcomes
from shared.errors import BackendUnavailable


def _merge_sum(payloads):
    return {"value": sum(p["value"] for p in payloads if p is not None)}


class TestCombineOutcomes:
    """Test cases for combine_outcomes()."""

    def test_single_outcome_is_returned_as_is(self):
        outcome = Success({"value": 1})

        assert combine_outcomes([outcome]) is outcome

    def test_single_failure_is_returned_as_is(self):
        outcome = Failure("down")

        assert combine_outcomes([outcome]) is outcome

    def test_all_successes_are_merged_in_call_order(self):
        merged = combine_outcomes(
            [Success({"value": 1}), Success({"value": 2})],
            merge=lambda payloads: [p["value"] for p in payloads],
        )

        assert merged == Success([1, 2])

    def test_without_merge_rule_payloads_are_listed(self):
        assert combine_outcomes([Success(1), Success(2)]) == Success([1, 2])

    def test_any_failure_fails_the_whole(self):
        cause = BackendUnavailable("shipping", "UNAVAILABLE")
        combined = combine_outcomes(
            [Success({"value": 1}), Failure("shipping down", cause=cause)],
            merge=_merge_sum,
        )

        assert isinstance(combined, Failure)
        assert combined.reason == "shipping down"
        assert combined.cause is cause

    def test_partial_tolerance_merges_survivors(self):
        combined = combine_outcomes(
            [Success({"value": 1}), Failure("down"), Success({"value": 4})],
            merge=_merge_sum,
            tolerate_partial=True,
        )

        assert combined == Success({"value": 5})

    def test_partial_tolerance_still_fails_when_everything_fails(self):
        combined = combine_outcomes(
            [Failure("a"), Failure("b")],
            merge=_merge_sum,
            tolerate_partial=True,
        )

        assert isinstance(combined, Failure)
        assert combined.reason == "a; b"

    def test_empty_outcomes_rejected(self):
        with pytest.raises(ValueError):
            combine_outcomes([])
