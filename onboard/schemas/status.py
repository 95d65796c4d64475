"""Mapping between stored application statuses and the ones the API speaks.

Internally an accepted application is ``Selected``; clients see and send
``Approved``. Everything else passes through unchanged.
"""

from typing import Optional

from onboard.errors import ValidationError
from onboard.models.application import APPLICATION_STATUSES, SELECTED

APPROVED = "Approved"

EXTERNAL_STATUSES = tuple(APPROVED if s == SELECTED else s for s in APPLICATION_STATUSES)


def to_internal(status: str) -> str:
    internal = SELECTED if status == APPROVED else status
    if internal not in APPLICATION_STATUSES:
        raise ValidationError(
            [f"status must be one of: {', '.join(EXTERNAL_STATUSES)}"],
            message="Invalid status.",
        )
    return internal


def to_external(status: Optional[str]) -> Optional[str]:
    if status == SELECTED:
        return APPROVED
    return status
