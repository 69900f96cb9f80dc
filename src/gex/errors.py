"""Exceptions raised by the GEX engine and its collaborators."""


class GEXError(Exception):
    """Base exception for GEX errors."""
    pass


class MissingInputError(GEXError):
    """Raised when the symbol or spot price is missing or invalid."""
    pass


class UnsupportedSymbolError(GEXError):
    """Raised for symbols the provider has no equity option chain for (futures roots)."""
    pass


class UpstreamError(GEXError):
    """Raised when a market data provider call fails."""
    pass


class EmptyChainError(GEXError):
    """Raised when an option chain yields no strikes to build a profile from."""
    pass
