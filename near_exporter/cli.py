#!/usr/bin/env python3
"""
near-exporter CLI Interface
"""

import logging
import sys
import threading
from typing import Tuple

import click
from prometheus_client import CollectorRegistry, start_http_server

from .client import NearRpcClient
from .collector import NodeRpcCollector, build_descriptors
from .exceptions import NearExporterError, ValidationError
from .recorder import ValidatorRecorder
from .utils import setup_logging

logger = logging.getLogger(__name__)


def parse_listen_address(address: str) -> Tuple[str, int]:
    """Split 'host:port' or ':port' into (host, port); empty host binds all interfaces"""
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit():
        raise ValidationError(f"Invalid listen address: {address!r}")
    port_number = int(port)
    if not 0 < port_number < 65536:
        raise ValidationError(f"Invalid listen port: {port_number}")
    return host.strip("[]") or "0.0.0.0", port_number


@click.command()
@click.option('--internal-url', envvar='INTERNAL_URL', default='http://localhost:3030', show_default=True,
              help='RPC URL of the observed (internal) node')
@click.option('--external-url', envvar='EXTERNAL_URL', default='https://rpc.betanet.near.org', show_default=True,
              help='RPC URL of the reference (external) node')
@click.option('--account-id', envvar='ACCOUNT_ID', default='test', show_default=True,
              help='Validator account to report on')
@click.option('--listen-address', envvar='LISTEN_ADDRESS', default=':9333', show_default=True,
              help='Address for the /metrics endpoint')
@click.option('--client-timeout-seconds', envvar='CLIENT_TIMEOUT_SECONDS', type=float, default=30, show_default=True,
              help='RPC request timeout in seconds')
@click.option('--record-interval', envvar='RECORD_INTERVAL_SECONDS', type=float, default=60, show_default=True,
              help='Seconds between validator recordings (0 disables)')
@click.option('--insecure', is_flag=True, help='Skip TLS certificate verification')
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.option('--quiet', is_flag=True, help='Only log errors')
def cli(internal_url, external_url, account_id, listen_address, client_timeout_seconds,
        record_interval, insecure, debug, quiet):
    """Prometheus exporter for NEAR validator nodes"""

    # Set up logging
    if debug:
        setup_logging(logging.DEBUG)
    elif quiet:
        setup_logging(logging.ERROR)
    else:
        setup_logging(logging.INFO)

    try:
        host, port = parse_listen_address(listen_address)
    except NearExporterError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    internal_client = NearRpcClient(internal_url, timeout=client_timeout_seconds, verify=not insecure)
    external_client = NearRpcClient(external_url, timeout=client_timeout_seconds, verify=not insecure)

    registry = CollectorRegistry()
    registry.register(NodeRpcCollector(internal_client, external_client, account_id, build_descriptors()))

    try:
        start_http_server(port, addr=host, registry=registry)
    except OSError as e:
        click.echo(f"Error: cannot listen on {listen_address}: {e}", err=True)
        internal_client.close()
        external_client.close()
        sys.exit(1)
    logger.info(f"Serving metrics for {account_id} on {host}:{port}/metrics "
                f"(internal={internal_url}, external={external_url})")

    stop_event = threading.Event()
    if record_interval > 0:
        ValidatorRecorder(external_client, account_id, record_interval).start(stop_event)

    try:
        stop_event.wait()
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        stop_event.set()
        internal_client.close()
        external_client.close()


if __name__ == '__main__':
    cli()
