import os
from typing import Dict, Mapping, NamedTuple, Optional

from ape import networks
from ape.api.networks import LOCAL_NETWORK_NAME

from deployment.constants import (
    AMOY,
    BLOCKDAG_TESTNET,
    DEFAULT_PRIVATE_KEY,
    LOCALHOST,
    PRIVATE_KEY_ENVVAR,
    SUPPORTED_NETWORKS,
)
from deployment.utils import DeploymentConfigError


class NetworkProfile(NamedTuple):
    """A target network, as known to ape and to the address registry."""

    name: str
    choice: str  # ape network choice, e.g. polygon:amoy:node
    chain_id: int
    registry_key: str
    gas_price: Optional[int] = None
    local: bool = False

    @property
    def network_choice(self) -> str:
        """The ape ecosystem:network pair, without the provider."""
        return ":".join(self.choice.split(":")[:2])


NETWORK_PROFILES: Dict[str, NetworkProfile] = {
    LOCALHOST: NetworkProfile(
        name=LOCALHOST,
        choice="ethereum:local:node",
        chain_id=31337,
        registry_key="localhostAddresses",
        local=True,
    ),
    AMOY: NetworkProfile(
        name=AMOY,
        choice="polygon:amoy:node",
        chain_id=80002,
        registry_key="amoyAddresses",
    ),
    BLOCKDAG_TESTNET: NetworkProfile(
        name=BLOCKDAG_TESTNET,
        choice="ethereum:blockdag-testnet:node",
        chain_id=1043,
        registry_key="blockdagTestnetAddresses",
        gas_price=1_000_000_000,  # 1 gwei
    ),
}


def get_network_profile(name: str) -> NetworkProfile:
    try:
        return NETWORK_PROFILES[name]
    except KeyError:
        raise DeploymentConfigError(
            f"Unsupported network '{name}'; expected one of {', '.join(SUPPORTED_NETWORKS)}."
        )


def validate_network_choice(profile: NetworkProfile, connected_choice: str) -> None:
    """Raises if ape is connected to a different network than the target profile."""
    if connected_choice != profile.network_choice:
        raise DeploymentConfigError(
            f"Target network {profile.name} expects ape network {profile.network_choice}, "
            f"but the provider is connected to {connected_choice}."
        )


def is_local_network() -> bool:
    """Returns True if ape is connected to a local development chain."""
    return networks.provider.network.name == LOCAL_NETWORK_NAME


def get_private_key(profile: NetworkProfile, environ: Optional[Mapping[str, str]] = None) -> str:
    """
    Returns the signing credential for the given network.
    Falls back to a placeholder, which is only acceptable for local networks.
    """
    environ = os.environ if environ is None else environ
    private_key = environ.get(PRIVATE_KEY_ENVVAR)
    if private_key:
        return private_key

    if not profile.local:
        raise DeploymentConfigError(
            f"{PRIVATE_KEY_ENVVAR} is not set; refusing to sign for {profile.name} "
            "with the placeholder key."
        )
    print(f"WARNING: {PRIVATE_KEY_ENVVAR} is not set. Using placeholder signing key.")
    return DEFAULT_PRIVATE_KEY


def is_placeholder_key(private_key: str) -> bool:
    return private_key == DEFAULT_PRIVATE_KEY
