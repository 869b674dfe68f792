#!/usr/bin/env python3
"""
NEAR Node RPC Collector
prometheus_client custom collector comparing an internal NEAR node with an
external reference node and reporting staking figures for one account
"""

import logging
from dataclasses import dataclass, fields
from typing import Iterator, List, Optional, Tuple, Union

from prometheus_client.core import GaugeMetricFamily

from .exceptions import NearExporterError
from .kickouts import classify_kickouts
from .models import EpochSnapshot, MetricsSnapshot, StatusSnapshot
from .reconciler import reconcile, reconcile_status, summarize_epoch
from .stake import stake_to_float

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MetricDescriptor:
    """Name, help text and label names of one gauge"""
    name: str
    documentation: str
    labels: Tuple[str, ...] = ()


@dataclass(frozen=True)
class NodeRpcDescriptors:
    """All gauges exported by NodeRpcCollector, created once per process"""
    epoch_block_produced: MetricDescriptor
    epoch_block_expected: MetricDescriptor
    seat_price: MetricDescriptor
    current_stake: MetricDescriptor
    epoch_start_height: MetricDescriptor
    block_height_external: MetricDescriptor
    block_height_internal: MetricDescriptor
    block_lag: MetricDescriptor
    blocks_missed: MetricDescriptor
    syncing: MetricDescriptor
    version_build: MetricDescriptor
    prev_epoch_kickout: MetricDescriptor

    def all(self) -> List[MetricDescriptor]:
        return [getattr(self, f.name) for f in fields(self)]

    def validator_dependent(self) -> List[MetricDescriptor]:
        """Descriptors reported invalid when the validator set cannot be used"""
        return [
            self.epoch_block_produced,
            self.epoch_block_expected,
            self.seat_price,
            self.current_stake,
            self.epoch_start_height,
            self.block_height_external,
            self.block_height_internal,
            self.blocks_missed,
            self.syncing,
            self.version_build,
            self.prev_epoch_kickout,
        ]


def build_descriptors() -> NodeRpcDescriptors:
    return NodeRpcDescriptors(
        epoch_block_produced=MetricDescriptor(
            "near_epoch_block_produced_number",
            "The number of block produced in epoch"),
        epoch_block_expected=MetricDescriptor(
            "near_epoch_block_expected_number",
            "The number of block expected in epoch"),
        seat_price=MetricDescriptor(
            "near_seat_price",
            "Validator seat price"),
        current_stake=MetricDescriptor(
            "near_current_stake",
            "Current stake of a given account id"),
        epoch_start_height=MetricDescriptor(
            "near_epoch_start_height",
            "Near epoch start height"),
        block_height_external=MetricDescriptor(
            "near_block_height_external",
            "The head of the NEAR chain according to the external node"),
        block_height_internal=MetricDescriptor(
            "near_block_height_internal",
            "The head of the NEAR chain according to the internal node"),
        block_lag=MetricDescriptor(
            "near_block_lag",
            "The number of blocks the internal node is behind the external node."),
        blocks_missed=MetricDescriptor(
            "near_blocks_missed",
            "The number of blocks missed while validating in the active set."),
        syncing=MetricDescriptor(
            "near_sync_state",
            "Sync state"),
        version_build=MetricDescriptor(
            "near_version_build",
            "The Near node version build",
            ("version", "build")),
        prev_epoch_kickout=MetricDescriptor(
            "near_prev_epoch_kickout",
            "Near previous epoch kicked out validators",
            ("account_id", "reason", "produced", "expected", "stake_u128", "threshold_u128")),
    )


@dataclass(frozen=True)
class ConstMetric:
    """A gauge value produced during one scrape"""
    descriptor: MetricDescriptor
    value: float
    label_values: Tuple[str, ...] = ()


@dataclass(frozen=True)
class InvalidMetric:
    """Marks a gauge as unavailable for this scrape, carrying the cause"""
    descriptor: MetricDescriptor
    error: Exception


Emitted = Union[ConstMetric, InvalidMetric]


def status_metrics(status: StatusSnapshot, descriptors: NodeRpcDescriptors) -> List[ConstMetric]:
    """Gauges derived from the two status responses"""
    return [
        ConstMetric(descriptors.syncing, float(status.syncing)),
        ConstMetric(descriptors.block_height_internal, float(status.internal_height)),
        ConstMetric(descriptors.block_height_external, float(status.external_height)),
        ConstMetric(descriptors.block_lag, float(status.block_lag)),
        ConstMetric(descriptors.version_build, float(status.build_hash), (status.version, status.build)),
    ]


def epoch_metrics(epoch: EpochSnapshot, descriptors: NodeRpcDescriptors) -> List[ConstMetric]:
    """Gauges derived from the validator set"""
    return [
        ConstMetric(descriptors.epoch_start_height, float(epoch.epoch_start_height)),
        ConstMetric(descriptors.epoch_block_produced, float(epoch.blocks_produced)),
        ConstMetric(descriptors.epoch_block_expected, float(epoch.blocks_expected)),
        ConstMetric(descriptors.blocks_missed, float(epoch.blocks_missed)),
        ConstMetric(descriptors.seat_price, stake_to_float(epoch.seat_price)),
        ConstMetric(descriptors.current_stake, stake_to_float(epoch.current_stake)),
    ]


class NodeRpcCollector:
    """Collector registered with a prometheus_client CollectorRegistry"""

    def __init__(self, internal_client, external_client, account_id: str,
                 descriptors: Optional[NodeRpcDescriptors] = None):
        self.internal_client = internal_client
        self.external_client = external_client
        self.account_id = account_id
        self.descriptors = descriptors or build_descriptors()

    def describe(self) -> List[GaugeMetricFamily]:
        return [_family(d) for d in self.descriptors.all()]

    def scrape(self) -> List[Emitted]:
        """
        Fetch both statuses and the validator set and return what to export.

        A failed status fetch yields only an invalid version_build signal. A
        failed validator fetch, or a malformed stake in its data, appends
        invalid signals for every validator-dependent gauge after the status
        gauges already produced.
        """
        d = self.descriptors

        try:
            internal = self.internal_client.status()
            external = self.external_client.status()
        except NearExporterError as e:
            return [InvalidMetric(d.version_build, e)]

        status = reconcile_status(internal, external)
        emitted: List[Emitted] = list(status_metrics(status, d))

        try:
            validator_set = self.external_client.validators(status.internal_height)
            epoch = summarize_epoch(validator_set, self.account_id)
            kickouts = list(classify_kickouts(validator_set.prev_epoch_kickouts))
        except NearExporterError as e:
            emitted.extend(InvalidMetric(descriptor, e) for descriptor in d.validator_dependent())
            return emitted

        emitted.extend(epoch_metrics(epoch, d))
        emitted.extend(ConstMetric(d.prev_epoch_kickout, k.value, k.labels) for k in kickouts)

        logger.debug(f"Scrape for {self.account_id}: lag={status.block_lag} "
                     f"produced={epoch.blocks_produced}/{epoch.blocks_expected} "
                     f"kickouts={len(kickouts)}")
        return emitted

    def collect(self) -> Iterator[GaugeMetricFamily]:
        """
        Turn one scrape into metric families.

        An invalid signal wins over any valid value emitted for the same gauge
        in the same scrape; invalid gauges are left out and the error logged.
        """
        emitted = self.scrape()

        invalid = {}
        for item in emitted:
            if isinstance(item, InvalidMetric):
                invalid.setdefault(item.descriptor.name, item.error)
        _log_invalid(invalid)

        families = {}
        for item in emitted:
            if not isinstance(item, ConstMetric) or item.descriptor.name in invalid:
                continue
            family = families.get(item.descriptor.name)
            if family is None:
                family = families[item.descriptor.name] = _family(item.descriptor)
            family.add_metric(list(item.label_values), item.value)

        yield from families.values()

    def collect_snapshot(self) -> MetricsSnapshot:
        """Same fetch sequence as a scrape, returning the typed snapshot"""
        internal = self.internal_client.status()
        external = self.external_client.status()
        validator_set = self.external_client.validators(internal.latest_block_height)
        return reconcile(internal, external, validator_set, self.account_id)


def _family(descriptor: MetricDescriptor) -> GaugeMetricFamily:
    return GaugeMetricFamily(descriptor.name, descriptor.documentation, labels=list(descriptor.labels))


def _log_invalid(invalid: dict):
    by_error = {}
    for name, error in invalid.items():
        by_error.setdefault(id(error), (error, []))[1].append(name)
    for error, names in by_error.values():
        logger.error(f"Collection failed for {', '.join(names)}: {error}")
