"""
Shared fixtures: canned NEAR RPC results and fake node sources
"""

from unittest.mock import Mock

import pytest

from near_exporter.models import ChainStatus, ValidatorSet


def status_result(height, syncing=False, version="1.2.3", build="abc123"):
    return {
        "version": {"version": version, "build": build},
        "sync_info": {"latest_block_height": height, "syncing": syncing},
    }


@pytest.fixture
def validators_result():
    return {
        "epoch_start_height": 90,
        "current_validators": [
            {"account_id": "alice.near", "stake": "3000000000000000000000000000000",
             "num_produced_blocks": 40, "num_expected_blocks": 50},
            {"account_id": "bob.near", "stake": "1000000000000000000000000000000",
             "num_produced_blocks": 9, "num_expected_blocks": 10},
            {"account_id": "carol.near", "stake": "2000000000000000000000000000000",
             "num_produced_blocks": 5, "num_expected_blocks": 5},
        ],
        "prev_epoch_kickout": [
            {"account_id": "dave.near",
             "reason": {"NotEnoughStake": {"stake_u128": "500", "threshold_u128": "1000"}}},
            {"account_id": "erin.near",
             "reason": {"NotEnoughBlocks": {"produced": 10.0, "expected": 20.0}}},
            {"account_id": "frank.near", "reason": "Unstaked"},
        ],
    }


@pytest.fixture
def make_source():
    """Build a fake node source returning the given status / validators results"""
    def _make(height=100, validators=None, status_error=None, validators_error=None, **status_kwargs):
        source = Mock()
        if status_error is not None:
            source.status.side_effect = status_error
        else:
            source.status.return_value = ChainStatus.from_rpc(status_result(height, **status_kwargs))
        if validators_error is not None:
            source.validators.side_effect = validators_error
        elif validators is not None:
            source.validators.return_value = ValidatorSet.from_rpc(validators)
        return source
    return _make
