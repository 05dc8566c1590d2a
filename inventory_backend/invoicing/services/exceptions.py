# invoicing/services/exceptions.py

"""
INVOICING SERVICE ERRORS

Centralized domain errors for internal invoice services.
Stock failures (InsufficientStock) come from products.services.exceptions
and propagate unchanged.
"""


class InvoicingError(Exception):
    """Base exception for all invoicing service failures."""


class InvoiceNotFound(InvoicingError):
    """Raised when the target invoice does not exist."""

    def __init__(self, invoice_id):
        self.invoice_id = invoice_id
        super().__init__(f"Internal invoice {invoice_id} not found")


class DuplicateInvoiceCode(InvoicingError):
    """Raised when another invoice already uses the code."""

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"An internal invoice with code '{code}' already exists")


class InvalidReference(InvoicingError):
    """Raised when a movement type, responsible user or product does not exist."""

    def __init__(self, field: str, value):
        self.field = field
        self.value = value
        super().__init__(f"{field} '{value}' does not exist")


class InvalidInvoiceLine(InvoicingError):
    """Raised when a line has a non-positive quantity or a negative price."""


class InvalidInvoiceTransition(InvoicingError):
    """Raised when a lifecycle transition is not allowed."""

    def __init__(self, from_state: str, to_state: str):
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(f"Invoice cannot transition from '{from_state}' to '{to_state}'")


class InvalidInvoiceHeader(InvoicingError):
    """Raised when a header field is malformed (blank code or concept, code too long)."""


class TransitionNotPermitted(InvoicingError):
    """Raised when the caller lacks a capability the locked transition needs."""

    def __init__(self, from_state: str, to_state: str, missing):
        self.from_state = from_state
        self.to_state = to_state
        self.missing = sorted(missing)
        super().__init__(
            f"Moving an invoice from '{from_state}' to '{to_state}' requires: {', '.join(self.missing)}"
        )
