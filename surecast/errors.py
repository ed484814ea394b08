"""Exception hierarchy for surecast."""

from __future__ import annotations

from typing import Optional


class SurecastError(Exception):
    """Base class for all surecast errors."""


class ValidationError(SurecastError):
    """Input rejected before it reaches the execution engine."""


class AmountError(ValidationError):
    """Malformed human or base-unit amount."""


class InvalidNameError(ValidationError):
    """Name cannot be hashed under the supported normalization policy."""


class SerializationError(SurecastError):
    """Stored workflow or manifest payload could not be decoded."""


class QuoteError(SurecastError):
    """Upstream quoting API rejected the request."""


class ChainingError(QuoteError):
    """A chained step found no quoted output on its predecessor."""


class ChainSwitchError(SurecastError):
    """Wallet refused or failed to switch network."""


class SubmissionError(SurecastError):
    """Signing was rejected or the broadcast failed."""


class RecordReadError(SurecastError):
    """Malformed RPC response, rate limiting or transport failure."""


class RecordNotFoundError(SurecastError):
    """No record exists for the requested key."""


class PreparedTransactionMismatch(SurecastError):
    """Live prepared transaction does not belong to the confirming operation."""


class RunInProgressError(SurecastError):
    """An execution run is already active for the current workflow."""


class WalletError(SurecastError):
    """Error reported by the wallet collaborator.

    ``code`` mirrors the provider error code (``4001`` user rejection,
    ``4902`` unknown chain) when the wallet supplies one.
    """

    def __init__(self, message: str, code: Optional[int] = None) -> None:
        super().__init__(message)
        self.code = code
