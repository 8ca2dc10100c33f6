from .exceptions import NegotiateError, NoSupportedValues
from .headers import RankedEntry, parse_header
from .matching import MatchOptions, match
from .negotiation import (
    NegotiationKind,
    negotiate,
    negotiate_content,
    negotiate_encoding,
    negotiate_language,
    select_best,
)

__all__ = [
    "MatchOptions",
    "NegotiateError",
    "NegotiationKind",
    "NoSupportedValues",
    "RankedEntry",
    "match",
    "negotiate",
    "negotiate_content",
    "negotiate_encoding",
    "negotiate_language",
    "parse_header",
    "select_best",
]
