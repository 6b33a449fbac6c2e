"""
Snapshot parsing for Depth OCR.

Turns the raw OCR text of one market-depth frame into a Snapshot. The layout
is recognized with positional and keyword rules:

    ORDERS ...                          <- marker line, otherwise rejected
    <bid> <orders> <qty> <ask> <orders> <qty>   (repeated ladder rows)
    Total <bid total> Total <ask total>
    Open ... High ...                   <- footer, any order
    Low ... Prev. Close ...
    Volume ... Avg. price ...
    LTQ ... LTT <date><time>
    Lower circuit ... Upper circuit ...
"""

import math
import re
from dataclasses import dataclass
from decimal import Decimal
from functools import reduce
from itertools import takewhile
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .utils import (
    Number, NumericPolicy, PriceLevel, Snapshot, SnapshotParseError,
    ORDERS_MARKER
)


_FLOAT_PREFIX = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_INT_PREFIX = re.compile(r"[+-]?\d+")

TOTALS_KEYWORD = "Total"
LADDER_COLUMNS = 6


# =============================================================================
# Numeric Helpers
# =============================================================================

def _parse_token(token: str, pattern: "re.Pattern", convert: Callable, policy: NumericPolicy) -> Number:
    token = token.strip()
    if policy is NumericPolicy.STRICT:
        if not pattern.fullmatch(token):
            raise SnapshotParseError(f"Malformed numeric token: {token!r}")
        return convert(token)

    match = pattern.match(token)
    if match is None:
        return math.nan
    return convert(match.group(0))


def parse_number(token: str, policy: NumericPolicy = NumericPolicy.LENIENT) -> float:
    """
    Parse a decimal OCR token.

    LENIENT reads the longest leading numeric prefix ("12.5x" -> 12.5) and
    returns NaN when there is none. STRICT requires the whole token to be
    numeric and raises SnapshotParseError otherwise.
    """
    return _parse_token(token, _FLOAT_PREFIX, float, policy)


def parse_integer(token: str, policy: NumericPolicy = NumericPolicy.LENIENT) -> Number:
    """Parse an integer OCR token. Same policy rules as parse_number."""
    return _parse_token(token, _INT_PREFIX, int, policy)


def add_decimal_from_end(number: Number) -> float:
    """
    Insert a decimal point two digits from the end.

    The depth display drops the price separator, so 12345 reads as 123.45,
    100 as 1.00 and 5 as 0.05.
    """
    if isinstance(number, float) and not math.isfinite(number):
        return number
    return float(Decimal(str(number)).scaleb(-2))


def _last_token(segment: str) -> str:
    tokens = segment.split()
    return tokens[-1] if tokens else ""


# =============================================================================
# Footer Rules
# =============================================================================

@dataclass(frozen=True)
class FooterRule:
    """A keyword rule that pulls session statistics out of one footer line."""
    name: str
    matches: Callable[[str], bool]
    extract: Callable[[str, NumericPolicy], Dict[str, Any]]


def _split_pair(separator: str, keys: Tuple[str, str]):
    """Extractor: split on separator, last token of each half -> keys."""
    def extract(line: str, policy: NumericPolicy) -> Dict[str, Any]:
        halves = line.split(separator)
        return {
            key: parse_number(_last_token(half), policy)
            for key, half in zip(keys, halves)
        }
    return extract


def _extract_last_trade(line: str, policy: NumericPolicy) -> Dict[str, Any]:
    halves = line.split("LTT")
    values = {"ltq": parse_number(_last_token(halves[0]), policy)}
    if len(halves) > 1:
        # Date and time arrive glued together: "2024-01-1509:15:32"
        date_time = _last_token(halves[1])
        if date_time:
            values["ltt"] = f"{date_time[:10]} {date_time[10:]}"
    return values


FOOTER_RULES: Tuple[FooterRule, ...] = (
    FooterRule(
        "open_high",
        lambda line: line.startswith("Open"),
        _split_pair(" High ", ("open", "high")),
    ),
    FooterRule(
        "low_prev_close",
        lambda line: "Prev. Close" in line,
        _split_pair("Prev. Close", ("low", "prev_close")),
    ),
    FooterRule(
        "volume_avg_price",
        lambda line: line.startswith("Volume"),
        _split_pair(" Avg. price ", ("volume", "avg_price")),
    ),
    FooterRule(
        "last_trade",
        lambda line: line.startswith("LQ") or line.startswith("LTQ"),
        _extract_last_trade,
    ),
    FooterRule(
        "circuit_limits",
        lambda line: "circuit" in line,
        _split_pair(" Upper", ("lower_circuit", "upper_circuit")),
    ),
)


def match_footer_line(
    line: str,
    policy: NumericPolicy = NumericPolicy.LENIENT,
    rules: Sequence[FooterRule] = FOOTER_RULES
) -> Dict[str, Any]:
    """Apply the first matching footer rule. Unmatched lines yield {}."""
    line = line.strip()
    for rule in rules:
        if rule.matches(line):
            return rule.extract(line, policy)
    return {}


# =============================================================================
# Ladder and Totals
# =============================================================================

def split_lines(text: str) -> List[str]:
    return text.split("\n")


def is_totals_line(line: str) -> bool:
    return line.lstrip().startswith(TOTALS_KEYWORD)


def parse_price_level(
    line: str,
    policy: NumericPolicy = NumericPolicy.LENIENT
) -> Optional[PriceLevel]:
    """
    Map the first six whitespace tokens of a ladder row onto a PriceLevel.

    Column order is fixed (bid price, bid orders, bid qty, ask price,
    ask orders, ask qty). Rows with fewer than six tokens are noise and
    return None.
    """
    tokens = line.split()
    if len(tokens) < LADDER_COLUMNS:
        return None

    bid_price, bid_orders, bid_qty, ask_price, ask_orders, ask_qty = tokens[:LADDER_COLUMNS]
    return PriceLevel(
        bid_price=add_decimal_from_end(parse_number(bid_price, policy)),
        bid_orders=parse_integer(bid_orders, policy),
        bid_quantity=parse_integer(bid_qty, policy),
        ask_price=add_decimal_from_end(parse_number(ask_price, policy)),
        ask_orders=parse_integer(ask_orders, policy),
        ask_quantity=parse_integer(ask_qty, policy),
    )


def parse_totals(
    line: str,
    policy: NumericPolicy = NumericPolicy.LENIENT
) -> Tuple[Number, Number]:
    """
    Parse "Total 2,500 Total 3,000" into (2500, 3000).

    Raises:
        SnapshotParseError: if the line has fewer than two Total segments
    """
    segments = line.split(TOTALS_KEYWORD)[1:]
    if len(segments) < 2:
        raise SnapshotParseError(f"Malformed totals line: {line!r}")

    bid_total, ask_total = (
        parse_integer(segment.strip().replace(",", ""), policy)
        for segment in segments[:2]
    )
    return bid_total, ask_total


# =============================================================================
# Parser
# =============================================================================

class SnapshotParser:
    """Parses the OCR text of one depth-ladder frame."""

    def __init__(
        self,
        numeric_policy: NumericPolicy = NumericPolicy.LENIENT,
        marker: str = ORDERS_MARKER,
        footer_rules: Sequence[FooterRule] = FOOTER_RULES
    ):
        self.numeric_policy = NumericPolicy(numeric_policy)
        self.marker = marker
        self.footer_rules = tuple(footer_rules)

    def is_depth_view(self, text: str) -> bool:
        """True when the first line carries the ORDERS marker."""
        return self.marker in split_lines(text)[0]

    def parse(self, text: str) -> Optional[Snapshot]:
        """
        Parse OCR text into a Snapshot.

        Args:
            text: Raw OCR output for one frame

        Returns:
            Snapshot, or None when the frame is not a depth-ladder view

        Raises:
            SnapshotParseError: if the totals line is missing or malformed,
                or a numeric token is malformed under NumericPolicy.STRICT
        """
        if not self.is_depth_view(text):
            return None

        policy = self.numeric_policy
        body = split_lines(text)[1:]

        # An indented "Total" row also ends the ladder; OCR often adds leading spaces
        ladder_lines = list(takewhile(lambda line: not is_totals_line(line), body))
        remainder = body[len(ladder_lines):]
        if not remainder:
            raise SnapshotParseError("Totals line not found")

        totals_line, footer_lines = remainder[0], remainder[1:]

        levels = (parse_price_level(line, policy) for line in ladder_lines)
        order_book = tuple(level for level in levels if level is not None)
        bid_total, ask_total = parse_totals(totals_line, policy)

        footer = reduce(
            lambda acc, line: {**acc, **match_footer_line(line, policy, self.footer_rules)},
            footer_lines,
            {}
        )

        return Snapshot(
            order_book=order_book,
            bid_total=bid_total,
            ask_total=ask_total,
            **footer
        )


def parse_snapshot(
    text: str,
    numeric_policy: NumericPolicy = NumericPolicy.LENIENT
) -> Optional[Snapshot]:
    """Convenience wrapper around SnapshotParser.parse."""
    return SnapshotParser(numeric_policy=numeric_policy).parse(text)
