from types import SimpleNamespace

import pytest
from ape.utils import EMPTY_BYTES32

from deployment.constants import (
    BLOCKDAG_TESTNET,
    EIP1967_ADMIN_SLOT,
    SELECTOR_BITMASK,
    ZIKUANI_VOTE,
)
from deployment.networks import get_network_profile
from deployment.params import InitializerParameters
from deployment.policy import PolicyConfig, build_eligibility_parameters
from deployment.upgrades import Upgrades, _validate_initializer
from tests.conftest import DEPLOYER_ADDRESS, NOW, PROXY_ADDRESS

INITIALIZER = "__ZikuaniVote_init"
IMPLEMENTATION_ADDRESS = "0xDc64a140Aa3E981100a9becA4E685f962f0cF6C9"
ADMIN_ADDRESS = "0x5FC8d32690cc91D4c39d9d3abcBD16989F875707"
OTHER_ADDRESS = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"

PARAMS_FIELDS = (
    "identityCreationTimestampUpperBound",
    "citizenshipWhitelist",
    "birthDateLowerbound",
    "expirationDateLowerBound",
    "identityCounterUpperBound",
)


def _abi_input(name, components=None):
    if components is not None:
        components = [SimpleNamespace(name=component) for component in components]
    return SimpleNamespace(name=name, components=components)


def _container(*methods):
    abis = [
        SimpleNamespace(name=name, inputs=[_abi_input(f"arg{i}") for i in range(arity)])
        for name, arity in methods
    ]
    contract_type = SimpleNamespace(name=ZIKUANI_VOTE, methods=abis)
    return SimpleNamespace(contract_type=contract_type)


class FakeContainer:
    def __init__(self, name, methods=()):
        self.contract_type = SimpleNamespace(name=name, methods=list(methods))
        self.at_calls = list()

    def at(self, address):
        self.at_calls.append(address)
        return SimpleNamespace(address=address)


class FakeMethod:
    def __init__(self, contract):
        self.contract = contract
        self.calls = list()

    def __call__(self, *args, **kwargs):
        self.calls.append((args, kwargs))

    def __str__(self):
        return "upgradeAndCall"


class FakeAccount:
    address = DEPLOYER_ADDRESS

    def __init__(self, implementation):
        self.implementation = implementation
        self.deployments = list()

    def set_autosign(self, enabled, passphrase=None):
        self.autosign = enabled

    def deploy(self, container, *args, **kwargs):
        self.deployments.append((container, args, kwargs))
        if len(self.deployments) == 1:
            return self.implementation
        return SimpleNamespace(address=PROXY_ADDRESS)


@pytest.fixture
def encoded_calls():
    return list()


@pytest.fixture
def account(encoded_calls):
    def encode_input(*args):
        encoded_calls.append(args)
        return b"\x01initializer-calldata"

    implementation = SimpleNamespace(
        address=IMPLEMENTATION_ADDRESS, **{INITIALIZER: SimpleNamespace(encode_input=encode_input)}
    )
    return FakeAccount(implementation)


@pytest.fixture
def vote_container():
    inputs = [_abi_input("params", PARAMS_FIELDS)]
    inputs.extend(_abi_input(name) for name in ("issuer", "smt", "verifier", "selector"))
    return FakeContainer(ZIKUANI_VOTE, [SimpleNamespace(name=INITIALIZER, inputs=inputs)])


@pytest.fixture
def vote_args():
    return [
        build_eligibility_parameters(PolicyConfig(), now=NOW),
        OTHER_ADDRESS,
        OTHER_ADDRESS,
        OTHER_ADDRESS,
        SELECTOR_BITMASK,
    ]


@pytest.fixture
def proxy_admin():
    admin = SimpleNamespace(
        address=ADMIN_ADDRESS,
        contract_type=SimpleNamespace(name="ProxyAdmin"),
        owner=lambda: DEPLOYER_ADDRESS,
    )
    admin.upgradeAndCall = FakeMethod(admin)
    return admin


@pytest.fixture
def oz(monkeypatch, proxy_admin):
    dependency = SimpleNamespace(
        TransparentUpgradeableProxy=FakeContainer("TransparentUpgradeableProxy"),
        ProxyAdmin=SimpleNamespace(at=lambda address: proxy_admin),
    )
    monkeypatch.setattr("deployment.upgrades.get_oz_dependency", lambda: dependency)
    return dependency


@pytest.fixture
def storage(monkeypatch):
    slots = dict()

    def get_storage(address, slot):
        return slots.get((address, slot), EMPTY_BYTES32)

    provider = SimpleNamespace(get_storage=get_storage)
    monkeypatch.setattr("deployment.upgrades.chain", SimpleNamespace(provider=provider))
    return slots


@pytest.fixture
def make_upgrades(monkeypatch, account):
    monkeypatch.setattr("deployment.upgrades.is_local_network", lambda: True)

    def _make(profile, verify=False):
        return Upgrades(profile=profile, verify=verify, account=account, autosign=True)

    return _make


def test_initializer_matches_abi():
    container = _container((INITIALIZER, 5), ("vote", 2))
    _validate_initializer(container, INITIALIZER, [1, 2, 3, 4, 5])


def test_unknown_initializer():
    container = _container(("initialize", 5))
    with pytest.raises(InitializerParameters.Invalid, match=INITIALIZER):
        _validate_initializer(container, INITIALIZER, [1, 2, 3, 4, 5])


def test_initializer_arity_mismatch():
    container = _container((INITIALIZER, 5))
    with pytest.raises(InitializerParameters.Invalid, match="requires 5 argument"):
        _validate_initializer(container, INITIALIZER, [1, 2, 3, 4])


def test_eligibility_fields_match_struct(vote_container, vote_args):
    _validate_initializer(vote_container, INITIALIZER, vote_args)


def test_eligibility_fields_out_of_struct_order(vote_args):
    swapped = list(PARAMS_FIELDS)
    swapped[2], swapped[3] = swapped[3], swapped[2]
    inputs = [_abi_input("params", swapped)]
    inputs.extend(_abi_input(f"arg{i}") for i in range(4))
    container = FakeContainer(ZIKUANI_VOTE, [SimpleNamespace(name=INITIALIZER, inputs=inputs)])

    with pytest.raises(InitializerParameters.Invalid, match="params fields"):
        _validate_initializer(container, INITIALIZER, vote_args)


def test_deploy_proxy(
    make_upgrades, localhost, account, oz, vote_container, vote_args, encoded_calls
):
    upgrades = make_upgrades(localhost)
    proxy = upgrades.deploy_proxy(vote_container, vote_args, initializer=INITIALIZER)

    (impl_container, impl_args, impl_kwargs), (proxy_container, proxy_args, proxy_kwargs) = (
        account.deployments
    )
    assert impl_container is vote_container
    assert impl_args == ()
    assert impl_kwargs == {"publish": False}

    assert encoded_calls == [tuple(vote_args)]

    assert proxy_container is oz.TransparentUpgradeableProxy
    assert proxy_args == (IMPLEMENTATION_ADDRESS, DEPLOYER_ADDRESS, b"\x01initializer-calldata")
    assert proxy_kwargs == {"publish": False}

    assert vote_container.at_calls == [PROXY_ADDRESS]
    assert proxy.address == PROXY_ADDRESS


def test_deploy_proxy_rejects_bad_initializer(make_upgrades, localhost, account, vote_container):
    upgrades = make_upgrades(localhost)
    with pytest.raises(InitializerParameters.Invalid):
        upgrades.deploy_proxy(vote_container, [1, 2, 3], initializer=INITIALIZER)
    assert account.deployments == []


def test_deployment_kwargs(make_upgrades, localhost):
    assert make_upgrades(localhost)._get_kwargs() == {"publish": False}
    assert make_upgrades(localhost, verify=True)._get_kwargs() == {"publish": True}

    blockdag = make_upgrades(get_network_profile(BLOCKDAG_TESTNET))
    assert blockdag._get_kwargs() == {"publish": False, "gas_price": 1_000_000_000}


def test_upgrade_proxy(make_upgrades, localhost, account, oz, storage, proxy_admin):
    storage[(PROXY_ADDRESS, EIP1967_ADMIN_SLOT)] = bytes(12) + bytes.fromhex(ADMIN_ADDRESS[2:])
    container = FakeContainer(ZIKUANI_VOTE)

    upgrades = make_upgrades(localhost)
    instance = upgrades.upgrade_proxy(PROXY_ADDRESS, container)

    assert [deployment[0] for deployment in account.deployments] == [container]
    assert proxy_admin.upgradeAndCall.calls == [
        ((PROXY_ADDRESS, IMPLEMENTATION_ADDRESS, b""), {"sender": account})
    ]
    assert instance.address == PROXY_ADDRESS


def test_upgrade_proxy_empty_admin_slot(make_upgrades, localhost, account, oz, storage):
    upgrades = make_upgrades(localhost)
    with pytest.raises(ValueError, match="Admin slot"):
        upgrades.upgrade_proxy(PROXY_ADDRESS, FakeContainer(ZIKUANI_VOTE))
    assert account.deployments == []


def test_upgrade_proxy_not_admin_owner(make_upgrades, localhost, account, oz, storage, proxy_admin):
    storage[(PROXY_ADDRESS, EIP1967_ADMIN_SLOT)] = bytes(12) + bytes.fromhex(ADMIN_ADDRESS[2:])
    proxy_admin.owner = lambda: OTHER_ADDRESS

    upgrades = make_upgrades(localhost)
    with pytest.raises(ValueError, match=f"owned by {OTHER_ADDRESS}"):
        upgrades.upgrade_proxy(PROXY_ADDRESS, FakeContainer(ZIKUANI_VOTE))
    assert account.deployments == []
    assert proxy_admin.upgradeAndCall.calls == []
