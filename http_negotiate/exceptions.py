"""
Exceptions raised by the negotiation helpers.
"""


class NegotiateError(ValueError):
    """Base class for content negotiation failures."""


class NoSupportedValues(NegotiateError):
    """Raised when a negotiation is attempted without any supported values."""

    def __init__(self) -> None:
        super().__init__("No supported values supplied")
