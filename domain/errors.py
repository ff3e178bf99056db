from __future__ import annotations


class LedgerError(Exception):
    """Base class for every error raised by the ledger."""


class InvalidAmountError(LedgerError, ValueError):
    """Raised for negative or unparseable amounts."""


class InvalidPlayerError(LedgerError, ValueError):
    """Raised when a player identifier is missing or malformed."""


class StorageError(LedgerError):
    """
    The account store could not be reached or read.

    Stores raise this from `load()`; the account manager catches it, logs
    it and reports a failed load instead of propagating it.
    """


class ConfigurationError(LedgerError):
    """Raised when a setting is missing, malformed or unsafe."""


class LedgerNotLoadedError(LedgerError):
    """Raised when accounts are opened before the ledger has been loaded."""
