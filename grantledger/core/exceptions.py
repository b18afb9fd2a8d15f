"""
grantledger Exception Hierarchy

All exceptions inherit from GrantLedgerError for easy catching.
Every raised error means "this operation did not happen".
"""


class GrantLedgerError(Exception):
    """Base exception for all grantledger errors"""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class InvalidAddress(GrantLedgerError):
    """Raised when an identity is null, the ledger itself, or the token"""
    pass


class LengthMismatch(GrantLedgerError):
    """Raised when batch input sequences differ in length"""
    pass


class BatchTooLarge(GrantLedgerError):
    """Raised when a batch exceeds the configured maximum size"""
    pass


class AmountNonPositive(GrantLedgerError):
    """Raised when a grant amount is zero or negative"""
    pass


class InvalidSchedule(GrantLedgerError):
    """Raised when vesting group parameters are inconsistent"""
    pass


class UnknownVestingGroup(InvalidSchedule):
    """Raised when a vesting group name is not in the catalog"""
    pass


class ZeroVestedAmount(GrantLedgerError):
    """Raised when a claim would pay out nothing"""
    pass


class TransferFailed(GrantLedgerError):
    """Raised when the token collaborator rejects or fails a transfer"""
    pass


class NotAuthorized(GrantLedgerError):
    """Raised when a privileged operation is called by a non-admin"""
    pass


class GrantNotFound(GrantLedgerError):
    """Raised when a grant id was never issued"""
    pass


class GrantRemoved(GrantLedgerError):
    """Raised when operating on a grant that has been terminated"""
    pass


class ReentrantOperation(GrantLedgerError):
    """Raised when a grant is re-entered while a payout is in flight"""
    pass


class JournalError(GrantLedgerError):
    """Raised when audit journal operations fail"""
    pass


class ConfigError(GrantLedgerError):
    """Raised when a configuration document is invalid"""
    pass
