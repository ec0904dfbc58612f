import json
from types import SimpleNamespace

import pytest

from deployment.constants import (
    CREDENTIAL_ISSUER,
    INITIALIZER_PARAMS_DIR,
    LOCALHOST,
    QUERY_PROOF_VERIFIER,
    REGISTRATION_SMT,
)
from deployment.networks import get_network_profile
from deployment.registry import AddressRegistry
from deployment.utils import _load_yaml

# Common constants
NOW = 1_700_000_000
ONE_DAY = 24 * 60 * 60

DEPLOYER_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
PROXY_ADDRESS = "0xCf7Ed3AccA5a467e9e704C703E8D87F634fB0Fc9"

LOCALHOST_ADDRESSES = {
    QUERY_PROOF_VERIFIER: "0x5fbdb2315678afecb367f032d93f642f64180aa3",
    REGISTRATION_SMT: "0xe7f1725e7734ce288f8367e1bb143e90bb3f0512",
    CREDENTIAL_ISSUER: "0x9fe46736679d2d9a65f0992f2272de9f3c7a6db0",
}


class FakeUpgrades:
    """Stands in for deployment.upgrades.Upgrades; records calls instead of sending transactions."""

    def __init__(
        self, profile, chain_id=None, local=True, network_choice=None, proxy_address=PROXY_ADDRESS
    ):
        self.profile = profile
        self.network_choice = network_choice or profile.network_choice
        self.chain_id = profile.chain_id if chain_id is None else chain_id
        self.is_local = local
        self.proxy_address = proxy_address
        self.factory_calls = list()
        self.deploy_calls = list()

    def get_account(self):
        return SimpleNamespace(address=DEPLOYER_ADDRESS)

    def get_contract_factory(self, contract_name):
        self.factory_calls.append(contract_name)
        return SimpleNamespace(name=contract_name)

    def deploy_proxy(self, container, args, initializer):
        self.deploy_calls.append((container, args, initializer))
        return SimpleNamespace(address=self.proxy_address)


# Fixtures
@pytest.fixture
def localhost():
    return get_network_profile(LOCALHOST)


@pytest.fixture
def registry_filepath(tmp_path):
    filepath = tmp_path / "ethereum.json"
    data = {"amoyAddresses": {}, "localhostAddresses": dict(LOCALHOST_ADDRESSES)}
    filepath.write_text(json.dumps(data))
    return filepath


@pytest.fixture
def registry(registry_filepath):
    return AddressRegistry.from_file(registry_filepath)


@pytest.fixture
def upgrades(localhost):
    return FakeUpgrades(profile=localhost)


@pytest.fixture
def vote_config():
    return _load_yaml(INITIALIZER_PARAMS_DIR / LOCALHOST / "zikuani-vote.yml")


@pytest.fixture
def blacklist_transfer_config():
    return _load_yaml(INITIALIZER_PARAMS_DIR / LOCALHOST / "zikuani-blacklist-transfer.yml")
