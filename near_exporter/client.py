#!/usr/bin/env python3
"""
NEAR JSON-RPC Client
Issues single-attempt JSON-RPC requests against one NEAR node
"""

import logging
import time
from typing import Any, Dict, List, Optional

import requests
import urllib3

from .exceptions import NetworkError, RpcResponseError, ValidationError
from .models import ChainStatus, ValidatorSet

logger = logging.getLogger(__name__)


class NearRpcClient:
    """Node status source backed by a NEAR RPC endpoint"""

    def __init__(self, url: str, timeout: float = 30, verify: bool = True):
        self.url = url
        self.timeout = timeout

        self.session = requests.Session()
        self.session.verify = verify
        self.session.headers.update({
            'User-Agent': 'near-exporter/1.0',
            'Content-Type': 'application/json'
        })
        if not verify:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    def get(self, method: str, params: Optional[List[Any]] = None) -> Dict[str, Any]:
        """Send one JSON-RPC request and return its `result` member"""
        payload = {
            "jsonrpc": "2.0",
            "id": "dontcare",
            "method": method,
            "params": params if params is not None else []
        }

        start_time = time.time()
        try:
            response = self.session.post(self.url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise NetworkError(self.url, method, str(e)) from e

        logger.debug(f"RPC {method} on {self.url} returned HTTP {response.status_code} "
                     f"in {time.time() - start_time:.3f}s")

        try:
            body = response.json()
        except ValueError as e:
            if response.status_code != 200:
                raise RpcResponseError(self.url, method, f"HTTP {response.status_code}") from e
            raise RpcResponseError(self.url, method, f"invalid JSON body: {e}") from e

        # nearcore answers some failures with 4xx/5xx and a JSON-RPC error body
        error = body.get("error") if isinstance(body, dict) else None
        if response.status_code != 200:
            message = f"HTTP {response.status_code}"
            if error:
                message += f": RPC error: {_error_detail(error)}"
            raise RpcResponseError(self.url, method, message)

        if not isinstance(body, dict):
            raise RpcResponseError(self.url, method, "response is not a JSON object")
        if error:
            raise RpcResponseError(self.url, method, f"RPC error: {_error_detail(error)}")
        if not isinstance(body.get("result"), dict):
            raise RpcResponseError(self.url, method, "missing result")

        return body["result"]

    def status(self) -> ChainStatus:
        """Chain head, sync flag and build identity of the node"""
        result = self.get("status")
        try:
            return ChainStatus.from_rpc(result)
        except ValidationError as e:
            raise RpcResponseError(self.url, "status", str(e)) from e

    def validators(self, block_height: Optional[int] = None) -> ValidatorSet:
        """Validator set of the epoch containing `block_height` (latest when None)"""
        result = self.get("validators", [block_height])
        try:
            return ValidatorSet.from_rpc(result)
        except ValidationError as e:
            raise RpcResponseError(self.url, "validators", str(e)) from e

    def close(self):
        self.session.close()


def _error_detail(error: Any) -> Any:
    """Most specific description in a JSON-RPC error object"""
    if isinstance(error, dict):
        cause = error.get("cause")
        if isinstance(cause, dict) and cause.get("name"):
            return f"{cause['name']} ({error.get('data') or error.get('message')})"
        return error.get("data") or error.get("message") or error
    return error
