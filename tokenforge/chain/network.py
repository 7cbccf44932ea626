"""
Network catalogue and a minimal JSON-RPC client.

``hardhat`` is the in-process LocalChain. Remote networks are only queried
(chain id, block number) to confirm that the endpoint matches the
configuration before anything is deployed against it.
"""

from itertools import count
from typing import Any, Dict, List, Optional

import requests
from loguru import logger
from pydantic import BaseModel, Field

from tokenforge.chain.local_chain import HARDHAT_CHAIN_ID
from tokenforge.exceptions import ConfigurationError, NetworkMismatchError, RpcError


class NetworkConfig(BaseModel):
    """A deployment target"""
    name: str
    chain_id: int
    url: Optional[str] = None
    accounts: List[str] = Field(default_factory=list, repr=False)

    @property
    def is_local(self) -> bool:
        return self.url is None


NETWORKS: Dict[str, NetworkConfig] = {
    "hardhat": NetworkConfig(name="hardhat", chain_id=HARDHAT_CHAIN_ID),
    "base": NetworkConfig(name="base", url="https://8453.rpc.thirdweb.com", chain_id=8453),
}


def resolve_network(settings, require_accounts: bool = False) -> NetworkConfig:
    """
    Build the active NetworkConfig from the catalogue plus settings overrides.

    Args:
        settings: Settings instance
        require_accounts: Fail when a remote network has no deployer key

    Raises:
        ConfigurationError: unknown network, or missing deployer key when required
    """
    base = NETWORKS.get(settings.network)
    if base is None:
        raise ConfigurationError(
            f"Unknown network '{settings.network}'. Available: {', '.join(sorted(NETWORKS))}"
        )

    update: Dict[str, Any] = {}
    if settings.rpc_url:
        update["url"] = settings.rpc_url
    if settings.chain_id is not None:
        update["chain_id"] = settings.chain_id
    if settings.secret:
        update["accounts"] = [settings.secret]
    network = base.model_copy(update=update)

    if require_accounts and not network.is_local and not network.accounts:
        raise ConfigurationError(f"SECRET must be set to use network '{network.name}'")
    return network


class JsonRpcClient:
    """Blocking JSON-RPC 2.0 client over HTTP"""

    def __init__(self, url: str, session: Optional[requests.Session] = None, timeout: float = 10.0):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})
        self._ids = count(1)

    def request(self, method: str, params: Optional[list] = None) -> Any:
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params or []}
        try:
            response = self.session.post(self.url, json=payload, timeout=self.timeout)
        except requests.RequestException as exc:
            raise RpcError(f"{method} failed: {exc}") from exc

        if response.status_code != 200:
            raise RpcError(f"{method} failed: HTTP {response.status_code}: {response.text}")

        try:
            body = response.json()
        except ValueError as exc:
            raise RpcError(f"{method} failed: response is not JSON: {response.text[:200]}") from exc
        if not isinstance(body, dict):
            raise RpcError(f"{method} failed: unexpected response {body!r}")

        if body.get("error"):
            error = body["error"]
            raise RpcError(f"{method} failed: {error.get('code')} {error.get('message')}")
        return body.get("result")

    def chain_id(self) -> int:
        return self._quantity("eth_chainId")

    def block_number(self) -> int:
        return self._quantity("eth_blockNumber")

    def _quantity(self, method: str) -> int:
        result = self.request(method)
        try:
            return int(result, 16)
        except (TypeError, ValueError) as exc:
            raise RpcError(f"{method} returned {result!r}, expected a hex quantity") from exc


def verify_network(network: NetworkConfig, client: Optional[JsonRpcClient] = None) -> int:
    """
    Confirm that the endpoint behind ``network`` reports the configured chain id.

    Returns:
        The endpoint's current block number

    Raises:
        NetworkMismatchError: if the chain ids differ
    """
    if network.is_local:
        raise ConfigurationError(f"Network '{network.name}' is in-process; there is no endpoint to check")

    client = client or JsonRpcClient(network.url)
    actual = client.chain_id()
    if actual != network.chain_id:
        raise NetworkMismatchError(network.name, network.chain_id, actual)

    block = client.block_number()
    logger.info(f"Network {network.name} OK - chain id {actual}, block {block}")
    return block
