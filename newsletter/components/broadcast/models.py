"""
Broadcast component models.

A newsletter issue and the result of publishing it.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from newsletter.core.entities import ErrorDetail, Outcome


@dataclass(frozen=True)
class PublishInput:
    """A newsletter issue. Bodies are sent verbatim."""

    title: str
    html: str
    text: str


@dataclass(frozen=True)
class PublishOutput:
    """
    Output from a publish attempt.

    On UNEXPECTED, ``delivered`` recipients already got the issue; there is no
    record of them, so publishing again sends it to them twice.
    """

    outcome: Outcome
    delivered: int = 0
    skipped: int = 0
    errors: list[ErrorDetail] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.outcome is Outcome.OK
