#!/usr/bin/env python3
"""
Kickout Classifier
Maps previous-epoch kickouts onto `near_prev_epoch_kickout` samples. Only
NotEnoughStake and NotEnoughBlocks are reported; each carries its own fields.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Tuple

from .models import (
    NOT_ENOUGH_BLOCKS,
    NOT_ENOUGH_STAKE,
    KickoutEntry,
    NotEnoughBlocks,
    NotEnoughStake,
)
from .stake import parse_stake
from .utils import format_number

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KickoutMetric:
    """One kickout sample: value plus its six label values"""
    value: float
    account_id: str
    reason: str
    produced: str = ""
    expected: str = ""
    stake_u128: str = ""
    threshold_u128: str = ""

    @property
    def labels(self) -> Tuple[str, str, str, str, str, str]:
        return (self.account_id, self.reason, self.produced, self.expected,
                self.stake_u128, self.threshold_u128)


def classify_kickout(entry: KickoutEntry) -> Optional[KickoutMetric]:
    """
    Classify a single kickout.

    Returns None when the entry is not reported. Raises StakeParseError for a
    malformed stake string.
    """
    reason = entry.reason

    if isinstance(reason, NotEnoughStake):
        if reason.stake is None:
            return None
        if reason.threshold is None:
            logger.warning(f"Kickout of {entry.account_id}: {NOT_ENOUGH_STAKE} without threshold_u128, skipping")
            return None
        return KickoutMetric(
            value=parse_stake(reason.stake),
            account_id=entry.account_id,
            reason=NOT_ENOUGH_STAKE,
            stake_u128=reason.stake,
            threshold_u128=reason.threshold,
        )

    if isinstance(reason, NotEnoughBlocks):
        if reason.produced is None:
            return None
        if reason.expected is None:
            logger.warning(f"Kickout of {entry.account_id}: {NOT_ENOUGH_BLOCKS} without expected, skipping")
            return None
        return KickoutMetric(
            value=float(reason.produced),
            account_id=entry.account_id,
            reason=NOT_ENOUGH_BLOCKS,
            produced=format_number(reason.produced),
            expected=format_number(reason.expected),
        )

    logger.debug(f"Kickout of {entry.account_id}: unreported reason {reason.name}")
    return None


def classify_kickouts(kickouts: Iterable[KickoutEntry]) -> Iterator[KickoutMetric]:
    """Lazily yield one metric per reported kickout, in input order"""
    for entry in kickouts:
        metric = classify_kickout(entry)
        if metric is not None:
            yield metric
