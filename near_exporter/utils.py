#!/usr/bin/env python3
"""
Utility Functions
Logging setup and small formatting helpers shared by the collector modules
"""

import logging
import sys
from typing import Union

FNV32_OFFSET_BASIS = 0x811C9DC5
FNV32_PRIME = 0x01000193


def setup_logging(level=logging.INFO):
    """Set up logging configuration to stderr only"""
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        stream=sys.stderr
    )


def hash_string(value: str) -> int:
    """32-bit FNV-1a hash of a string, stable across processes"""
    h = FNV32_OFFSET_BASIS
    for byte in value.encode("utf-8"):
        h ^= byte
        h = (h * FNV32_PRIME) & 0xFFFFFFFF
    return h


def format_number(value: Union[int, float]) -> str:
    """Render a JSON number for a label: integral values drop the '.0'"""
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return str(value)
