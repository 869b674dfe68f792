"""
Custom exceptions for near-exporter
"""


class NearExporterError(Exception):
    """Base exception for near-exporter"""
    pass


class FetchError(NearExporterError):
    """A request to a node did not produce a usable response"""

    def __init__(self, url: str, method: str, message: str):
        self.url = url
        self.method = method
        super().__init__(f"Fetch error for {url} during {method}: {message}")


class NetworkError(FetchError):
    """Transport-level failure (connection, timeout)"""
    pass


class RpcResponseError(FetchError):
    """HTTP error, undecodable body or JSON-RPC error object"""
    pass


class StakeParseError(NearExporterError):
    """Stake amount is not a base-10 u128 integer"""

    def __init__(self, value):
        self.value = value
        shown = repr(value)
        if len(shown) > 64:
            shown = shown[:61] + "..."
        super().__init__(f"Invalid stake amount: {shown}")


class ValidationError(NearExporterError):
    """Input validation error"""
    pass
