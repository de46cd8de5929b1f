"""
Outcome of a backend RPC call.

Adapters never raise for backend trouble; they hand back either ``Success``
with the decoded payload or ``Failure`` with an opaque reason that is only
ever logged. ``Failure.cause`` keeps the classified error
(``BackendUnavailable`` or ``BackendApplicationError``) for logs and
metrics; the HTTP layer ignores it.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Sequence, Union

from shared.errors import GatewayError


@dataclass(frozen=True)
class Success:
    payload: Any

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    reason: str
    cause: Optional[GatewayError] = field(default=None, compare=False)

    @property
    def ok(self) -> bool:
        return False


Outcome = Union[Success, Failure]

# Receives one payload per call, in call order. Slots of failed calls hold
# None when the route tolerates partial failure.
MergeRule = Callable[[List[Optional[Any]]], Any]


def combine_outcomes(
    outcomes: Sequence[Outcome],
    merge: Optional[MergeRule] = None,
    tolerate_partial: bool = False,
) -> Outcome:
    """Fold the outcomes of a fan-out into a single outcome."""
    if not outcomes:
        raise ValueError("combine_outcomes needs at least one outcome")

    failures = [outcome for outcome in outcomes if isinstance(outcome, Failure)]
    if len(outcomes) == 1 and merge is None:
        return outcomes[0]
    if failures and (not tolerate_partial or len(failures) == len(outcomes)):
        return Failure(
            "; ".join(failure.reason for failure in failures),
            cause=failures[0].cause,
        )

    payloads = [outcome.payload if isinstance(outcome, Success) else None for outcome in outcomes]
    if merge is None:
        return Success(payloads)
    return Success(merge(payloads))
