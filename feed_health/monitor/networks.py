"""Chain selector name resolution for EVM networks."""

from feed_health.core.errors import NetworkResolutionError
from feed_health.core.types import NetworkHandle

CHAIN_FAMILY_EVM = "evm"

# name: (chain selector, chain id, is testnet)
_EVM_NETWORKS: dict[str, tuple[int, int, bool]] = {
    "ethereum-mainnet": (5009297550715157269, 1, False),
    "ethereum-mainnet-base-1": (15971525489660198786, 8453, False),
    "ethereum-mainnet-arbitrum-1": (4949039107694359620, 42161, False),
    "ethereum-mainnet-optimism-1": (3734403246176062136, 10, False),
    "polygon-mainnet": (4051577828743386545, 137, False),
    "avalanche-mainnet": (6433500567565415381, 43114, False),
    "binance_smart_chain-mainnet": (11344663589394136015, 56, False),
    "ethereum-testnet-sepolia": (16015286601757825753, 11155111, True),
    "ethereum-testnet-sepolia-base-1": (10344971235874465080, 84532, True),
    "ethereum-testnet-sepolia-arbitrum-1": (3478487238524512106, 421614, True),
    "ethereum-testnet-sepolia-optimism-1": (5224473277236331295, 11155420, True),
    "polygon-testnet-amoy": (16281711391670634445, 80002, True),
    "avalanche-testnet-fuji": (14767482510784806043, 43113, True),
    "binance_smart_chain-testnet": (13264668187771770619, 97, True),
}


def known_networks(
    chain_family: str = CHAIN_FAMILY_EVM, is_testnet: bool | None = None
) -> tuple[str, ...]:
    """Return the chain selector names resolvable for a chain family, optionally by testnet flag."""

    if chain_family != CHAIN_FAMILY_EVM:
        return ()
    return tuple(
        sorted(
            name
            for name, (_, _, testnet) in _EVM_NETWORKS.items()
            if is_testnet is None or testnet == is_testnet
        )
    )


def find_network(chain_family: str, chain_selector_name: str, is_testnet: bool) -> NetworkHandle | None:
    """Return the network handle, or None when the family, name, or testnet flag does not match."""

    if chain_family != CHAIN_FAMILY_EVM:
        return None

    entry = _EVM_NETWORKS.get(chain_selector_name.strip().lower())
    if entry is None:
        return None

    selector, chain_id, testnet = entry
    if testnet != is_testnet:
        return None

    return NetworkHandle(
        chain_family=chain_family,
        chain_selector_name=chain_selector_name.strip().lower(),
        chain_selector=selector,
        chain_id=chain_id,
        is_testnet=testnet,
    )


def resolve_network(chain_family: str, chain_selector_name: str, is_testnet: bool) -> NetworkHandle:
    """Resolve a network handle or raise NetworkResolutionError."""

    network = find_network(chain_family, chain_selector_name, is_testnet)
    if network is None:
        raise NetworkResolutionError(
            chain_selector_name, is_testnet, known=known_networks(chain_family, is_testnet)
        )
    return network
