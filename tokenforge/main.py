"""
tokenforge - command-line interface.

Subcommands:
    accounts        list signer addresses
    networks        show the network catalogue and the active network
    check-network   query the configured RPC endpoint
    deploy          deploy the token behind a proxy on the local chain
"""

import argparse
import sys
from typing import List, Optional

from loguru import logger

from tokenforge.chain.local_chain import LocalChain
from tokenforge.chain.network import NETWORKS, resolve_network, verify_network
from tokenforge.chain.upgrades import admin_address, deploy_proxy, implementation_address
from tokenforge.contracts.errors import ContractError
from tokenforge.contracts.token import MyERC721EnumerableUpgradeable
from tokenforge.core.logging import configure_logging, setup_standard_logging_intercept
from tokenforge.exceptions import ConfigurationError, RpcError
from tokenforge.settings import Settings, get_settings


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="tokenforge",
        description="Deploy and exercise the upgradeable ERC-721 token",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--network",
        type=str,
        default=None,
        help="Network name, overrides the NETWORK setting",
    )

    subcommands = parser.add_subparsers(dest="command", required=True)
    subcommands.add_parser("accounts", help="Print the list of accounts")
    subcommands.add_parser("networks", help="Print configured networks")
    subcommands.add_parser("check-network", help="Verify the RPC endpoint's chain id")
    subcommands.add_parser("deploy", help="Deploy the token behind a proxy on the local chain")

    return parser.parse_args(argv)


def cmd_accounts(settings: Settings) -> int:
    chain = LocalChain.from_settings(settings)
    for signer in chain.get_signers():
        print(signer.address)
    return 0


def cmd_networks(settings: Settings) -> int:
    active = resolve_network(settings)
    for name, network in sorted(NETWORKS.items()):
        marker = "*" if name == active.name else " "
        print(f"{marker} {name:<10} chain {network.chain_id:<8} {network.url or '(in-process)'}")
    print(f"Explorer API key: {settings.masked_explorer_key()}")
    return 0


def cmd_check_network(settings: Settings) -> int:
    network = resolve_network(settings)
    block = verify_network(network)
    print(f"{network.name}: chain id {network.chain_id} confirmed at block {block}")
    return 0


def cmd_deploy(settings: Settings) -> int:
    network = resolve_network(settings, require_accounts=True)
    if not network.is_local:
        raise ConfigurationError(f"Deploying to remote network '{network.name}' is not supported")

    chain = LocalChain.from_settings(settings)
    deployer = chain.signers[0]
    token = deploy_proxy(chain, deployer, MyERC721EnumerableUpgradeable)

    print(f"Proxy:          {token.address}")
    print(f"Implementation: {implementation_address(chain, token)}")
    print(f"ProxyAdmin:     {admin_address(chain, token)}")
    print(f"Owner:          {token.owner()}")
    print(f"Deploy tx:      {chain.receipts[-1].tx_hash}")
    return 0


COMMANDS = {
    "accounts": cmd_accounts,
    "networks": cmd_networks,
    "check-network": cmd_check_network,
    "deploy": cmd_deploy,
}


def main(argv: Optional[List[str]] = None, settings: Optional[Settings] = None) -> int:
    args = parse_arguments(argv)
    settings = settings or get_settings()
    if args.network:
        settings = settings.model_copy(update={"network": args.network})

    configure_logging(settings.log_level, settings.log_file)
    setup_standard_logging_intercept()

    try:
        return COMMANDS[args.command](settings)
    except (ConfigurationError, RpcError) as exc:
        logger.error(f"{args.command} failed: {exc}")
        return 1
    except ContractError as exc:
        logger.error(f"{args.command} reverted: {exc}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
