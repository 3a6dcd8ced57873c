"""
Shortens and merges signal names so that a pin out table stays readable.

A filter runs three stages on each column of names:

1. substitutions collapse verbose peripheral prefixes ("USART2_TX" becomes
   "U2_TX"),
2. factorizations merge names that only differ by one fragment ("ADC1_IN5"
   and "ADC2_IN5" become "ADC12_IN5"),
3. exclusions drop names of unwanted peripherals, last, so that a merged name
   is dropped as well.
"""

import logging
import re
from typing import Dict, Iterable, List, NamedTuple, Sequence, Tuple

from models.errors import PatternError

logger = logging.getLogger(__name__)

# Each prefix is anchored and must be followed by a digit or an underscore.
# Only the captured groups are kept.
SUBSTITUTIONS: Tuple[str, ...] = (
    r"((?:HR|LP)?T)IM",
    r"((?:LP)?U)S?ART",
    r"(D)FSDM",
    r"(F)S?MC",
    r"(Q)UADSPI(?:_BK)?",
    r"(S)PI",
    r"(SW)PMI",
    r"I2(S)",
    r"(SD)MMC",
    r"(SP)DIFRX",
    r"FD(C)AN",
    r"USB_OTG_([FH]S)",
    r"(T\d_B)KIN",
)

# Group 1 is the fragment merged with the given separator.
FACTORIZATIONS: Tuple[Tuple[str, str], ...] = (
    (r"T\d_B\d?_COMP(\d+)", ""),
    (r"ADC(\d)_IN[NP]?\d+", ""),
    (r"ADC\d+_IN([NP]?\d+)", ""),
    (r"[SUT]\d_(.+)", "/"),
)


class Factorization(NamedTuple):
    regex: re.Pattern
    separator: str


def _compile(pattern: str) -> re.Pattern:
    try:
        return re.compile(pattern)
    except re.error as e:
        raise PatternError(pattern, str(e)) from e


def factorize(names: Iterable[str], regex: re.Pattern, separator: str) -> List[str]:
    """
    Match each name with the regex; names sharing the text around the first
    group are merged into one, joining their first groups with the separator.

    Merged names come first, in order of first appearance, followed by the
    names which did not match.
    """
    others = []
    facts: Dict[Tuple[str, str], List[str]] = {}
    for name in names:
        m = regex.search(name)
        if m is None or m.start(1) < 0:
            others.append(name)
            continue
        outer = (name[: m.start(1)], name[m.end(1):])
        facts.setdefault(outer, []).append(m.group(1))
    merged = [f"{before}{separator.join(terms)}{after}" for (before, after), terms in facts.items()]
    return merged + others


class SignalFilter:
    """Filter signals to reduce pin out table size."""

    def __init__(self, exclusions: Sequence[str] = ()):
        self.excludes: List[re.Pattern] = self._compile_excludes(exclusions)
        self.subs: List[re.Pattern] = [_compile(rf"^{s}([0-9_])") for s in SUBSTITUTIONS]
        self.facts: List[Factorization] = [
            Factorization(_compile(pattern), separator)
            for pattern, separator in FACTORIZATIONS
        ]

    @staticmethod
    def _compile_excludes(exclusions: Sequence[str]) -> List[re.Pattern]:
        # One pattern per fragment, so that group numbers stay local to it.
        excludes = []
        for exclusion in exclusions:
            try:
                excludes.append(re.compile(rf"^(?:{exclusion})[0-9_]"))
            except re.error as e:
                raise PatternError(exclusion, str(e)) from e
        return excludes

    def substitute(self, name: str) -> str:
        for regex in self.subs:
            name = regex.sub(r"\1\2", name, count=1)
        return name

    def is_excluded(self, name: str) -> bool:
        return any(regex.match(name) for regex in self.excludes)

    def apply(self, names: Iterable[str]) -> List[str]:
        """Filter one column of signal names."""
        signals = [self.substitute(name) for name in names]
        for fact in self.facts:
            signals = factorize(signals, fact.regex, fact.separator)
        return [s for s in signals if not self.is_excluded(s)]

    def apply_columns(self, columns: Iterable[Iterable[str]]) -> List[List[str]]:
        """Filter each column independently."""
        return [self.apply(column) for column in columns]


def compile_filter(exclusions: Sequence[str] = ()) -> SignalFilter:
    """
    Prepare a new filter. Each exclusion is a regex fragment matched at the
    start of a signal name, right before a digit or an underscore.

    Raises:
        PatternError: If an exclusion is not a valid regex
    """
    signal_filter = SignalFilter(exclusions)
    if exclusions:
        logger.info(f"Excluding signals matching: {', '.join(exclusions)}")
    return signal_filter
