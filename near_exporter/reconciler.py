#!/usr/bin/env python3
"""
Snapshot Reconciler
Derives block lag, build identity, epoch production and stake figures from
two `status` responses and one validator set
"""

import logging
from typing import Optional

from .models import ChainStatus, EpochSnapshot, MetricsSnapshot, StatusSnapshot, ValidatorSet
from .stake import parse_stake_amount
from .utils import hash_string

logger = logging.getLogger(__name__)


def reconcile_status(internal: ChainStatus, external: ChainStatus) -> StatusSnapshot:
    """Compare the internal node's head with the external one"""
    return StatusSnapshot(
        internal_height=internal.latest_block_height,
        external_height=external.latest_block_height,
        block_lag=external.latest_block_height - internal.latest_block_height,
        syncing=1 if internal.syncing else 0,
        version=internal.version,
        build=internal.build,
        build_hash=hash_string(internal.build),
    )


def summarize_epoch(validator_set: ValidatorSet, account_id: str) -> EpochSnapshot:
    """
    Single pass over the current validators.

    Seat price is the smallest stake (0 when there are no validators). If the
    account is listed more than once the last entry wins; if it is absent its
    counts and stake are 0. Raises StakeParseError on a malformed stake.
    """
    seat_price: Optional[int] = None
    produced = expected = current_stake = 0
    matches = 0

    for validator in validator_set.current_validators:
        stake = parse_stake_amount(validator.stake)
        if seat_price is None or stake < seat_price:
            seat_price = stake
        if validator.account_id == account_id:
            produced = validator.num_produced_blocks
            expected = validator.num_expected_blocks
            current_stake = stake
            matches += 1

    if matches > 1:
        logger.warning(f"Account {account_id} listed {matches} times in current validators, using the last entry")
    elif matches == 0:
        logger.debug(f"Account {account_id} is not a current validator")

    return EpochSnapshot(
        epoch_start_height=validator_set.epoch_start_height,
        blocks_produced=produced,
        blocks_expected=expected,
        blocks_missed=expected - produced,
        seat_price=seat_price or 0,
        current_stake=current_stake,
    )


def reconcile(internal: ChainStatus, external: ChainStatus,
              validator_set: ValidatorSet, account_id: str) -> MetricsSnapshot:
    """Build the full snapshot from already fetched responses"""
    return MetricsSnapshot.from_parts(
        reconcile_status(internal, external),
        summarize_epoch(validator_set, account_id),
    )
