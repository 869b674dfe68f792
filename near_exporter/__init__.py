"""
near-exporter: Prometheus exporter for NEAR validator node health and staking
"""

from .client import NearRpcClient
from .collector import NodeRpcCollector, NodeRpcDescriptors, build_descriptors
from .kickouts import KickoutMetric, classify_kickouts
from .models import MetricsSnapshot
from .reconciler import reconcile
from .stake import parse_stake
from .utils import setup_logging
from .exceptions import *


__version__ = "1.0.0"

__all__ = [
    "NearRpcClient",
    "NodeRpcCollector",
    "NodeRpcDescriptors",
    "build_descriptors",
    "KickoutMetric",
    "classify_kickouts",
    "MetricsSnapshot",
    "reconcile",
    "parse_stake",
    "setup_logging",
    "NearExporterError",
    "FetchError",
    "NetworkError",
    "RpcResponseError",
    "StakeParseError",
    "ValidationError"
]
