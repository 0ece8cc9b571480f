"""Tri-state checklist item status.

Checklist toggles cycle ``na -> safe -> risk -> na`` on each press.
"""

from enum import StrEnum


class ChecklistStatus(StrEnum):
    """Status of a single checklist item."""

    na = "na"
    safe = "safe"
    risk = "risk"


_NEXT = {
    ChecklistStatus.na: ChecklistStatus.safe,
    ChecklistStatus.safe: ChecklistStatus.risk,
    ChecklistStatus.risk: ChecklistStatus.na,
}


def next_status(status: ChecklistStatus) -> ChecklistStatus:
    """Return the status that follows ``status`` in the toggle cycle."""
    return _NEXT[ChecklistStatus(status)]
