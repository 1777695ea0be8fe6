from __future__ import annotations


class SandwichScannerError(Exception):
    """Base class for every error raised by the scanner."""


class ProviderError(SandwichScannerError):
    """A remote blockchain call failed or timed out."""


class NotFoundError(SandwichScannerError):
    """An entity a previous call implied should exist is missing."""


class PairNotFoundError(NotFoundError):
    pass


class ParseError(SandwichScannerError):
    """Malformed address / hash, or an event that does not match its schema."""


class NumericOverflowError(SandwichScannerError):
    """A block number or window width is outside the representable range."""


class PersistenceError(SandwichScannerError):
    pass


class UnsupportedChainError(SandwichScannerError):
    pass


class UnsupportedExchangeError(SandwichScannerError):
    pass
