"""
Comparison policies used to decide whether an accepted entry
is satisfied by a supported one.
"""
from dataclasses import dataclass

from .headers import RankedEntry


@dataclass(frozen=True)
class MatchOptions:
    enforce_types: bool = False  # media types: "text/*" matches "text/html"
    strict: bool = False  # no fallback to the first supported value
    match_locales: bool = False  # languages: "en-US" matches "en-GB"


def match_parameters(a: dict[str, str], b: dict[str, str]) -> bool:
    if len(a) != len(b):
        return False

    for name, value in b.items():
        if a.get(name) != value:
            return False

    return True


def match_sub_types(a: str, b: str) -> bool:
    """
    Matches two media types on their type, honouring a "*" subtype
    on either side.
    """
    a_type, _, a_subtype = a.partition("/")
    b_type, _, b_subtype = b.partition("/")

    if a_type != b_type:
        return False

    if "*" in (a_subtype, b_subtype):
        return True

    return a_subtype == b_subtype


def match_locales(a: str, b: str) -> bool:
    """Matches two language tags on their primary subtag ("en-US" ~ "en")."""
    return a.split("-", 1)[0] == b.split("-", 1)[0]


def match(a: RankedEntry, b: RankedEntry, options: MatchOptions) -> bool:
    if a.value == b.value:
        return match_parameters(a.params, b.params)

    if options.enforce_types:
        return match_sub_types(a.value, b.value)

    if options.match_locales:
        return match_locales(a.value, b.value)

    return False
