"""
Server-driven content negotiation for the Accept, Accept-Encoding
and Accept-Language request headers.

Each negotiator takes the raw header sent by the client and the values
the server can produce, and returns the single value to respond with.
Client preferences are visited from the highest q-factor down; for each
one the supported values are scanned in the order the server listed them.
"""
import enum
import logging
from collections.abc import Iterable

from .exceptions import NoSupportedValues
from .headers import RankedEntry, parse_header
from .matching import MatchOptions, match

log = logging.getLogger(__name__)

# Always acceptable unless explicitly refused (RFC 7231 5.3.4)
IDENTITY_ENCODING = "identity"

# Accepted values that are satisfied by whatever the server prefers
WILDCARDS = frozenset({"*", "*/*"})


class NegotiationKind(enum.Enum):
    CONTENT = "content"
    ENCODING = "encoding"
    LANGUAGE = "language"

    def options(self, strict: bool = False) -> MatchOptions:
        if strict and self is not NegotiationKind.CONTENT:
            raise ValueError(f"strict negotiation is not supported for {self.value}")
        if self is NegotiationKind.CONTENT:
            return MatchOptions(enforce_types=True, strict=strict)
        if self is NegotiationKind.LANGUAGE:
            return MatchOptions(match_locales=True)
        return MatchOptions()


def _parse_supported(supported: list[str]) -> list[RankedEntry]:
    # Not re-ranked: the server's own ordering decides among equal matches.
    entries: list[RankedEntry] = []
    for value in dict.fromkeys(supported):
        entries.extend(parse_header(value))
    return entries


def select_best(
    accepted: str | None,
    supported: Iterable[str],
    options: MatchOptions = MatchOptions(),
) -> str | None:
    """
    Returns the supported value that best satisfies the ``accepted`` header.

    When nothing matches, the first supported value is returned, or
    ``None`` if ``options.strict`` is set.

    Raises NoSupportedValues if ``supported`` is empty.
    """
    supported = list(supported)
    if not supported:
        raise NoSupportedValues()

    default = None if options.strict else supported[0]

    if not accepted:
        return default

    candidates = _parse_supported(supported)

    for a in parse_header(accepted):
        if not a.quality:
            continue  # explicitly refused

        if a.value in WILDCARDS:
            log.debug("Wildcard %r accepted, selecting %r", a.value, candidates[0].value)
            return candidates[0].value

        for b in candidates:
            if match(a, b, options):
                log.debug("Accepted %r matched supported %r", a.value, b.value)
                return b.value

    log.debug("No match for %r, falling back to %r", accepted, default)
    return default


def _negotiate(
    kind: NegotiationKind,
    accepted: str | None,
    supported: Iterable[str],
    strict: bool = False,
) -> str:
    options = kind.options(strict)
    if kind is NegotiationKind.ENCODING:
        supported = [*supported, IDENTITY_ENCODING]

    best = select_best(accepted, supported, options)
    return "" if best is None else best


def negotiate_content(
    accepted: str | None, supported: Iterable[str], strict: bool = False
) -> str:
    """
    Negotiates a media type from an Accept header.

    In strict mode an empty string is returned when nothing matches
    instead of the first supported media type.
    """
    return _negotiate(NegotiationKind.CONTENT, accepted, supported, strict)


def negotiate_encoding(accepted: str | None, supported: Iterable[str]) -> str:
    """
    Negotiates a content coding from an Accept-Encoding header.

    "identity" is always offered after the given encodings, so this never
    fails even when ``supported`` is empty.
    """
    return _negotiate(NegotiationKind.ENCODING, accepted, supported)


def negotiate_language(accepted: str | None, supported: Iterable[str]) -> str:
    """Negotiates a language tag from an Accept-Language header."""
    return _negotiate(NegotiationKind.LANGUAGE, accepted, supported)


def negotiate(
    kind: NegotiationKind | str,
    accepted: str | None,
    supported: Iterable[str],
    strict: bool = False,
) -> str:
    """
    Negotiates for ``kind``, which may be a NegotiationKind or its
    value ("content", "encoding" or "language").

    Raises ValueError for an unknown kind, or for ``strict`` with
    anything but content.
    """
    return _negotiate(NegotiationKind(kind), accepted, supported, strict)
