import typing
from typing import Any, List, Optional

from ape import chain, networks, project
from ape.api import AccountAPI
from ape.contracts.base import ContractContainer, ContractInstance
from ape.utils import EMPTY_BYTES32
from eth_utils import to_checksum_address

from deployment.constants import EIP1967_ADMIN_SLOT, OZ_DEPENDENCY_NAME, OZ_DEPENDENCY_VERSION
from deployment.networks import NetworkProfile, is_local_network
from deployment.params import InitializerParameters, Transactor
from deployment.policy import ABI_FIELD_NAMES
from deployment.utils import check_plugins, get_contract_container


def get_oz_dependency():
    return project.dependencies[OZ_DEPENDENCY_NAME][OZ_DEPENDENCY_VERSION]


def _validate_struct_fields(contract_name: str, abi_inputs: List[Any], args: List[Any]) -> None:
    # records are encoded positionally, so their field order must match the struct
    for abi_input, arg in zip(abi_inputs, args):
        components = getattr(abi_input, "components", None)
        if not components or not hasattr(arg, "_fields"):
            continue
        expected = [component.name for component in components]
        actual = [ABI_FIELD_NAMES.get(field, field) for field in arg._fields]
        if expected != actual:
            raise InitializerParameters.Invalid(
                f"{contract_name} expects {abi_input.name} fields {expected}, "
                f"got {actual}."
            )


def _validate_initializer(container: ContractContainer, initializer: str, args: List[Any]) -> None:
    """Checks the initializer against the implementation ABI before anything is deployed."""
    contract_name = container.contract_type.name
    method_abis = [abi for abi in container.contract_type.methods if abi.name == initializer]
    if not method_abis:
        raise InitializerParameters.Invalid(
            f"{contract_name} has no initializer named '{initializer}'."
        )
    matching_abis = [abi for abi in method_abis if len(abi.inputs) == len(args)]
    if not matching_abis:
        expected = ", ".join(str(len(abi.inputs)) for abi in method_abis)
        raise InitializerParameters.Invalid(
            f"Initializer length mismatch - {contract_name}.{initializer} "
            f"requires {expected} argument(s), got {len(args)}."
        )
    _validate_struct_fields(contract_name, matching_abis[0].inputs, args)


class Upgrades(Transactor):
    """
    Deploys and upgrades OpenZeppelin transparent upgradeable proxies
    with the connected ape provider.
    """

    PROXY_NAME = "TransparentUpgradeableProxy"

    def __init__(
        self,
        profile: NetworkProfile,
        verify: bool = False,
        account: typing.Optional[AccountAPI] = None,
        autosign: bool = False,
    ):
        super().__init__(account, autosign)
        self.profile = profile
        self.verify = verify
        check_plugins(verify=verify, local=self.is_local)

    @property
    def chain_id(self) -> int:
        return networks.provider.network.chain_id

    @property
    def network_choice(self) -> str:
        network = networks.provider.network
        return f"{network.ecosystem.name}:{network.name}"

    @property
    def is_local(self) -> bool:
        return is_local_network()

    def _get_kwargs(self) -> typing.Dict[str, Any]:
        """Returns the deployment kwargs."""
        kwargs = {"publish": self.verify}
        if self.profile.gas_price is not None:
            kwargs["gas_price"] = self.profile.gas_price
        return kwargs

    def get_contract_factory(self, contract_name: str) -> ContractContainer:
        return get_contract_container(contract_name)

    def _deploy(self, container: ContractContainer, *args) -> ContractInstance:
        # ape returns once the deployment receipt is confirmed
        return self.get_account().deploy(container, *args, **self._get_kwargs())

    def deploy_proxy(
        self, container: ContractContainer, args: List[Any], initializer: str
    ) -> ContractInstance:
        """
        Deploys an implementation of ``container`` behind a new proxy,
        initialized in the proxy constructor by calling ``initializer(*args)``.
        """
        _validate_initializer(container, initializer, args)

        contract_name = container.contract_type.name
        print(f"\nDeploying {contract_name} implementation.")
        implementation = self._deploy(container)

        data = getattr(implementation, initializer).encode_input(*args)

        proxy_container = get_oz_dependency().TransparentUpgradeableProxy
        print(f"\nDeploying {self.PROXY_NAME} contract to proxy {contract_name}.")
        proxy_contract = self._deploy(
            proxy_container,
            implementation.address,
            self.get_account().address,  # initialOwner of the proxy admin
            data,
        )
        print(
            f"\nWrapping {contract_name} into {self.PROXY_NAME} "
            f"at {proxy_contract.address}."
        )
        return container.at(proxy_contract.address)

    def upgrade_proxy(
        self, proxy_address: str, container: ContractContainer, data: Optional[bytes] = b""
    ) -> ContractInstance:
        """Points an existing proxy at a freshly deployed implementation of ``container``."""
        admin_slot = chain.provider.get_storage(proxy_address, EIP1967_ADMIN_SLOT)
        if admin_slot == EMPTY_BYTES32:
            raise ValueError(
                f"Admin slot for contract at {proxy_address} is empty. "
                "Are you sure this is an EIP1967-compatible proxy?"
            )

        admin_address = to_checksum_address(admin_slot[-20:])
        proxy_admin = get_oz_dependency().ProxyAdmin.at(admin_address)
        owner = proxy_admin.owner()
        if owner != self.get_account().address:
            raise ValueError(
                f"ProxyAdmin {admin_address} is owned by {owner}, "
                f"not by the deployer {self.get_account().address}."
            )

        print(f"\nDeploying {container.contract_type.name} implementation.")
        implementation = self._deploy(container)

        self.transact(
            proxy_admin.upgradeAndCall, proxy_address, implementation.address, data or b""
        )
        return container.at(proxy_address)
