#!/usr/bin/env python3
"""
NEAR Data Models
Typed views of the `status` and `validators` JSON-RPC results, plus the
derived snapshot the collector turns into gauges
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from .exceptions import ValidationError

NOT_ENOUGH_STAKE = "NotEnoughStake"
NOT_ENOUGH_BLOCKS = "NotEnoughBlocks"


def _require(payload: Dict[str, Any], key: str, kind, where: str):
    """Fetch a required key and check its JSON type"""
    if not isinstance(payload, dict) or key not in payload:
        raise ValidationError(f"{where}: missing '{key}'")
    value = payload[key]
    # bool is an int subclass, never accept it as a number
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise ValidationError(f"{where}: '{key}' has unexpected type {type(value).__name__}")
    return value


def _unsigned(payload: Dict[str, Any], key: str, where: str) -> int:
    value = _require(payload, key, int, where)
    if value < 0:
        raise ValidationError(f"{where}: '{key}' must not be negative")
    return value


def _optional_list(payload: Dict[str, Any], key: str, where: str) -> List[Any]:
    """A list member that may be absent or null"""
    value = payload.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValidationError(f"{where}: '{key}' has unexpected type {type(value).__name__}")
    return value


@dataclass
class ChainStatus:
    """Sync state and build identity reported by a node's `status` method"""
    syncing: bool
    latest_block_height: int
    version: str
    build: str

    @classmethod
    def from_rpc(cls, result: Dict[str, Any]) -> "ChainStatus":
        sync_info = _require(result, "sync_info", dict, "status")
        version = _require(result, "version", dict, "status")
        return cls(
            syncing=_require(sync_info, "syncing", bool, "status.sync_info"),
            latest_block_height=_unsigned(sync_info, "latest_block_height", "status.sync_info"),
            version=_require(version, "version", str, "status.version"),
            build=_require(version, "build", str, "status.version"),
        )


@dataclass
class ValidatorEntry:
    """One current validator; stake stays a decimal string until parsed"""
    account_id: str
    stake: str
    num_produced_blocks: int = 0
    num_expected_blocks: int = 0

    @classmethod
    def from_rpc(cls, item: Dict[str, Any]) -> "ValidatorEntry":
        where = "validators.current_validators"
        return cls(
            account_id=_require(item, "account_id", str, where),
            stake=_require(item, "stake", str, where),
            num_produced_blocks=_unsigned(item, "num_produced_blocks", where),
            num_expected_blocks=_unsigned(item, "num_expected_blocks", where),
        )


@dataclass
class NotEnoughStake:
    stake: Optional[str] = None
    threshold: Optional[str] = None


@dataclass
class NotEnoughBlocks:
    produced: Optional[Union[int, float]] = None
    expected: Optional[Union[int, float]] = None


@dataclass
class UnknownReason:
    """Any kickout reason the classifier does not report on"""
    name: str


KickoutReason = Union[NotEnoughStake, NotEnoughBlocks, UnknownReason]


def parse_kickout_reason(raw: Any) -> KickoutReason:
    """
    Turn the loosely typed `reason` record into one tagged variant.

    NEAR encodes unit reasons as a bare string ("Unstaked") and data-carrying
    reasons as a single-key object ({"NotEnoughStake": {...}}). When both
    recognized keys are present NotEnoughStake takes precedence.
    """
    if isinstance(raw, str):
        return UnknownReason(name=raw)
    if not isinstance(raw, dict):
        return UnknownReason(name=type(raw).__name__)

    if NOT_ENOUGH_STAKE in raw:
        fields = raw[NOT_ENOUGH_STAKE] if isinstance(raw[NOT_ENOUGH_STAKE], dict) else {}
        stake = fields.get("stake_u128")
        threshold = fields.get("threshold_u128")
        return NotEnoughStake(
            stake=stake if isinstance(stake, str) else None,
            threshold=threshold if isinstance(threshold, str) else None,
        )

    if NOT_ENOUGH_BLOCKS in raw:
        fields = raw[NOT_ENOUGH_BLOCKS] if isinstance(raw[NOT_ENOUGH_BLOCKS], dict) else {}
        produced = fields.get("produced")
        expected = fields.get("expected")
        return NotEnoughBlocks(
            produced=produced if _is_number(produced) else None,
            expected=expected if _is_number(expected) else None,
        )

    return UnknownReason(name=",".join(sorted(raw)) or "empty")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass
class KickoutEntry:
    """A validator removed at the previous epoch boundary"""
    account_id: str
    reason: KickoutReason

    @classmethod
    def from_rpc(cls, item: Dict[str, Any]) -> "KickoutEntry":
        return cls(
            account_id=_require(item, "account_id", str, "validators.prev_epoch_kickout"),
            reason=parse_kickout_reason(item.get("reason")),
        )


@dataclass
class ValidatorSet:
    """Result of the `validators` method at one block height"""
    epoch_start_height: int
    current_validators: List[ValidatorEntry] = field(default_factory=list)
    prev_epoch_kickouts: List[KickoutEntry] = field(default_factory=list)

    @classmethod
    def from_rpc(cls, result: Dict[str, Any]) -> "ValidatorSet":
        epoch_start_height = _unsigned(result, "epoch_start_height", "validators")
        current = _optional_list(result, "current_validators", "validators")
        kickouts = _optional_list(result, "prev_epoch_kickout", "validators")
        return cls(
            epoch_start_height=epoch_start_height,
            current_validators=[ValidatorEntry.from_rpc(v) for v in current],
            prev_epoch_kickouts=[KickoutEntry.from_rpc(k) for k in kickouts],
        )


@dataclass
class StatusSnapshot:
    """Values derived from the internal and external `status` responses"""
    internal_height: int
    external_height: int
    block_lag: int
    syncing: int
    version: str
    build: str
    build_hash: int


@dataclass
class EpochSnapshot:
    """Values derived from one validator set for the observed account"""
    epoch_start_height: int
    blocks_produced: int = 0
    blocks_expected: int = 0
    blocks_missed: int = 0
    seat_price: int = 0
    current_stake: int = 0


@dataclass
class MetricsSnapshot:
    """Everything one scrape reports, before conversion to gauge values"""
    internal_height: int
    external_height: int
    block_lag: int
    syncing: int
    version: str
    build: str
    epoch_start_height: int
    blocks_produced: int
    blocks_expected: int
    blocks_missed: int
    seat_price: int
    current_stake: int

    @classmethod
    def from_parts(cls, status: StatusSnapshot, epoch: EpochSnapshot) -> "MetricsSnapshot":
        return cls(
            internal_height=status.internal_height,
            external_height=status.external_height,
            block_lag=status.block_lag,
            syncing=status.syncing,
            version=status.version,
            build=status.build,
            epoch_start_height=epoch.epoch_start_height,
            blocks_produced=epoch.blocks_produced,
            blocks_expected=epoch.blocks_expected,
            blocks_missed=epoch.blocks_missed,
            seat_price=epoch.seat_price,
            current_stake=epoch.current_stake,
        )
