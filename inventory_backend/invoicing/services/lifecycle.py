"""
INTERNAL INVOICE LIFECYCLE RULES

This module defines the ONLY allowed lifecycle transitions
for InternalInvoice.

DESIGN PRINCIPLES:
- No database writes
- No stock mutation
- No side effects

Staying in the same state is always allowed (pure header or line edit),
except on a VOIDED invoice while INVOICING_LOCK_VOIDED is on.
"""

from django.conf import settings

from invoicing.models import InternalInvoice
from invoicing.services.exceptions import InvalidInvoiceTransition

DRAFT = InternalInvoice.STATE_DRAFT
CONFIRMED = InternalInvoice.STATE_CONFIRMED
VOIDED = InternalInvoice.STATE_VOIDED

STATES = {DRAFT, CONFIRMED, VOIDED}

INITIAL_STATES = {DRAFT, CONFIRMED}

TERMINAL_STATES = {
    VOIDED,
}

ALLOWED_TRANSITIONS = {
    DRAFT: {CONFIRMED, VOIDED},
    # CONFIRMED -> DRAFT reopens the invoice and reverses its stock.
    CONFIRMED: {VOIDED, DRAFT},
    VOIDED: set(),
}


def voided_is_locked() -> bool:
    return bool(getattr(settings, "INVOICING_LOCK_VOIDED", True))


def can_transition(*, from_state: str, to_state: str) -> bool:
    if to_state not in STATES:
        return False

    if from_state in TERMINAL_STATES and voided_is_locked():
        return False

    if from_state == to_state:
        return True

    if from_state in TERMINAL_STATES:
        # Lock disabled: VOIDED may be reopened like a draft.
        return to_state in ALLOWED_TRANSITIONS[DRAFT]

    return to_state in ALLOWED_TRANSITIONS.get(from_state, set())


def validate_transition(*, from_state: str, to_state: str) -> None:
    if not can_transition(from_state=from_state, to_state=to_state):
        raise InvalidInvoiceTransition(from_state, to_state)
