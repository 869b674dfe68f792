#!/usr/bin/env python3
"""
Stake Parsing
NEAR stake amounts are yoctoNEAR u128 values sent as decimal strings. They are
kept as Python ints for comparisons and only turned into floats for gauges.
"""

from .exceptions import StakeParseError

U128_MAX = 2 ** 128 - 1
U128_MAX_DIGITS = len(str(U128_MAX))


def parse_stake_amount(text: str) -> int:
    """Parse a decimal u128 stake string into an arbitrary-precision integer"""
    if not isinstance(text, str) or not text.isascii() or not text.isdigit():
        raise StakeParseError(text)
    # length check first: int() refuses very long strings with a ValueError
    if len(text) > U128_MAX_DIGITS:
        raise StakeParseError(text)
    amount = int(text)
    if amount > U128_MAX:
        raise StakeParseError(text)
    return amount


def stake_to_float(amount: int) -> float:
    """Nearest float for a stake amount, used at the gauge boundary"""
    return float(amount)


def parse_stake(text: str) -> float:
    """Parse a decimal stake string straight to its float approximation"""
    return stake_to_float(parse_stake_amount(text))
