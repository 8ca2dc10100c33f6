"""
HTTP Accept-family header parsing utilities.
"""
import logging
import re
from dataclasses import dataclass, field

log = logging.getLogger(__name__)

# name=value, the value optionally wrapped in matching single or double quotes
_PARAM_RE = re.compile(r"^(.+?)=([\"']?)(.*?)\2$")

# plain decimals: no exponent, underscores, "inf" or "nan"
_QUALITY_RE = re.compile(r"\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)\s*")

QUALITY_PARAM = "q"
DEFAULT_QUALITY = 1.0


@dataclass
class RankedEntry:
    value: str
    quality: float = DEFAULT_QUALITY
    params: dict[str, str] = field(default_factory=dict)

    @property
    def wildcards(self) -> int:
        return self.value.count("*")


def parse_quality(raw: str) -> float:
    """
    Converts a q-factor string to a float in [0, 1].
    A malformed q-factor (e.g., "q=foo") means "not acceptable".
    """
    if _QUALITY_RE.fullmatch(raw) is None:
        return 0.0

    q_val = float(raw)
    if q_val < 0:
        return 0.0

    if q_val > 1.0:
        q_val = 1.0  # q-factor cannot exceed 1.0

    return q_val


def parse_part(part: str) -> RankedEntry:
    """
    Parses a single comma-separated part of a header
    (e.g., "text/html;level=1;q=0.8").
    """
    components = part.split(";")
    value = components[0].strip()

    params: dict[str, str] = {}
    for pair in components[1:]:
        match = _PARAM_RE.match(pair)
        if match is None:
            log.debug("Skipping malformed parameter %r of %r", pair, value)
            continue
        params[match.group(1).strip()] = match.group(3).strip()

    quality = DEFAULT_QUALITY
    if QUALITY_PARAM in params:
        quality = parse_quality(params.pop(QUALITY_PARAM))

    return RankedEntry(value=value, quality=quality, params=params)


def _rank(entry: RankedEntry) -> tuple[float, int, int]:
    # Higher quality first, then fewer wildcards, then more parameters.
    return (-entry.quality, entry.wildcards, -len(entry.params))


def parse_header(header: str) -> list[RankedEntry]:
    """
    Parses an Accept, Accept-Encoding or Accept-Language header
    into entries ordered from most to least preferred.

    Every comma-separated part yields an entry, including empty ones,
    so callers should not pass an empty header.
    """
    entries = [parse_part(part) for part in header.split(",")]
    entries.sort(key=_rank)
    return entries
