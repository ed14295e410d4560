class LedgerError(Exception):
    """Base class for every error raised by the posting engine."""
    pass


class NotFound(LedgerError):
    """Raised when a document, account or voucher does not exist
    (or is soft-deleted, or belongs to another organization)."""
    pass


class AlreadyPosted(LedgerError):
    """Raised when posting a document that has already been posted."""
    pass


class InvalidState(LedgerError):
    """Raised on an illegal state transition
    (posting a cancelled document, voiding a draft voucher, ...)."""
    pass


class ValidationFailed(LedgerError):
    """Raised when a voucher breaks the double-entry rules.
    `violations` keeps every reason, in the order they were found."""

    def __init__(self, violations):
        self.violations = list(violations)
        super().__init__("Voucher validation failed: " + "; ".join(self.violations))


class ConfigurationError(LedgerError):
    """Raised when a required account cannot be resolved
    from the organization's chart of accounts."""

    def __init__(self, code, role=None):
        self.code = code
        self.role = role
        if code is None:
            message = f"No account configured for role {role}."
        else:
            label = f"{role} account" if role else "Account"
            message = f"{label} with code {code} not found."
        super().__init__(message + " Please set up chart of accounts.")


class VoucherNumberConflict(LedgerError):
    """Raised when a unique voucher number could not be allocated
    within the configured number of attempts."""
    pass
