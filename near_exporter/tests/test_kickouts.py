"""
Tests for the kickout classifier
"""

import types

import pytest

from near_exporter.exceptions import StakeParseError
from near_exporter.kickouts import classify_kickout, classify_kickouts
from near_exporter.models import KickoutEntry, NotEnoughBlocks, NotEnoughStake, UnknownReason


def kickout(account_id, reason):
    return KickoutEntry.from_rpc({"account_id": account_id, "reason": reason})


class TestClassifyKickout:
    def test_not_enough_stake(self):
        metric = classify_kickout(kickout("dave.near", {
            "NotEnoughStake": {"stake_u128": "500", "threshold_u128": "1000"}}))

        assert metric.value == 500.0
        assert metric.reason == "NotEnoughStake"
        assert metric.produced == ""
        assert metric.expected == ""
        assert metric.stake_u128 == "500"
        assert metric.threshold_u128 == "1000"
        assert metric.labels == ("dave.near", "NotEnoughStake", "", "", "500", "1000")

    def test_not_enough_blocks(self):
        metric = classify_kickout(kickout("erin.near", {
            "NotEnoughBlocks": {"produced": 10.0, "expected": 20.0}}))

        assert metric.value == 10.0
        assert metric.labels == ("erin.near", "NotEnoughBlocks", "10", "20", "", "")

    def test_not_enough_blocks_integer_json(self):
        metric = classify_kickout(kickout("erin.near", {
            "NotEnoughBlocks": {"produced": 3, "expected": 7}}))

        assert metric.value == 3.0
        assert metric.produced == "3"
        assert metric.expected == "7"

    def test_fractional_counts_keep_decimals(self):
        metric = classify_kickout(kickout("erin.near", {
            "NotEnoughBlocks": {"produced": 2.5, "expected": 20.0}}))
        assert metric.produced == "2.5"

    @pytest.mark.parametrize("reason", [
        "Unstaked",
        "DidNotGetASeat",
        {"Slashed": {}},
        {"NotEnoughChunks": {"produced": 1, "expected": 2}},
        {},
        None,
    ])
    def test_unrecognized_reasons_emit_nothing(self, reason):
        assert classify_kickout(kickout("frank.near", reason)) is None

    def test_missing_primary_field_emits_nothing(self):
        assert classify_kickout(kickout("a.near", {"NotEnoughStake": {"threshold_u128": "1000"}})) is None
        assert classify_kickout(kickout("b.near", {"NotEnoughBlocks": {"expected": 20}})) is None

    def test_missing_secondary_field_is_skipped(self, caplog):
        assert classify_kickout(kickout("a.near", {"NotEnoughStake": {"stake_u128": "500"}})) is None
        assert classify_kickout(kickout("b.near", {"NotEnoughBlocks": {"produced": 10}})) is None
        assert "without threshold_u128" in caplog.text
        assert "without expected" in caplog.text

    def test_malformed_stake_raises(self):
        with pytest.raises(StakeParseError):
            classify_kickout(kickout("a.near", {
                "NotEnoughStake": {"stake_u128": "lots", "threshold_u128": "1000"}}))


class TestClassifyKickouts:
    def test_order_and_filtering(self, validators_result):
        entries = [KickoutEntry.from_rpc(k) for k in validators_result["prev_epoch_kickout"]]
        metrics = list(classify_kickouts(entries))

        assert [m.account_id for m in metrics] == ["dave.near", "erin.near"]
        assert [m.reason for m in metrics] == ["NotEnoughStake", "NotEnoughBlocks"]

    def test_is_lazy(self):
        entries = [
            kickout("a.near", {"NotEnoughBlocks": {"produced": 1, "expected": 2}}),
            kickout("b.near", {"NotEnoughStake": {"stake_u128": "bad", "threshold_u128": "1"}}),
        ]
        metrics = classify_kickouts(entries)
        assert isinstance(metrics, types.GeneratorType)
        assert next(metrics).account_id == "a.near"
        with pytest.raises(StakeParseError):
            next(metrics)

    def test_empty(self):
        assert list(classify_kickouts([])) == []


class TestReasonParsing:
    def test_variants(self):
        assert kickout("a", {"NotEnoughStake": {"stake_u128": "1", "threshold_u128": "2"}}).reason == \
            NotEnoughStake(stake="1", threshold="2")
        assert kickout("a", {"NotEnoughBlocks": {"produced": 1, "expected": 2}}).reason == \
            NotEnoughBlocks(produced=1, expected=2)
        assert kickout("a", "Unstaked").reason == UnknownReason(name="Unstaked")

    def test_stake_takes_precedence_over_blocks(self):
        reason = kickout("a", {
            "NotEnoughBlocks": {"produced": 1, "expected": 2},
            "NotEnoughStake": {"stake_u128": "1", "threshold_u128": "2"},
        }).reason
        assert isinstance(reason, NotEnoughStake)

    def test_wrongly_typed_fields_are_dropped(self):
        reason = kickout("a", {"NotEnoughBlocks": {"produced": "10", "expected": True}}).reason
        assert reason == NotEnoughBlocks(produced=None, expected=None)
