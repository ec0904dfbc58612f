import typing
from abc import ABC, abstractmethod
from collections import OrderedDict
from pathlib import Path
from typing import Any, Optional

from ape.api import AccountAPI, ReceiptAPI
from ape.cli.choices import select_account
from ape.contracts.base import ContractInstance, ContractTransactionHandler
from ape.utils import ZERO_ADDRESS

from deployment.confirm import _confirm_resolution, _continue, _print_resolution
from deployment.constants import PROJECT_ROOT, REGISTRY_FILEPATH
from deployment.networks import NetworkProfile, get_network_profile, validate_network_choice
from deployment.policy import (
    PolicyConfig,
    build_eligibility_parameters,
    build_initial_lists,
    to_json,
)
from deployment.registry import AddressRegistry
from deployment.utils import (
    DeploymentConfigError,
    _load_yaml,
    get_contract_names,
    validate_config,
)

CONTRACT_INITIALIZER_PARAMETER_KEY = "initializer"
INITIALIZER_FUNCTION_KEY = "function"
INITIALIZER_ARGUMENTS_KEY = "arguments"


class VariableContext:
    def __init__(
        self,
        profile: NetworkProfile,
        registry: AddressRegistry,
        records: typing.Dict[str, Any] = None,
        constants: typing.Dict[str, Any] = None,
        deployer_address: Optional[str] = None,
    ):
        self.profile = profile
        self.registry = registry
        self.records = records or dict()
        self.constants = constants or dict()
        self.deployer_address = deployer_address


# Variables


class Variable(ABC):
    VARIABLE_PREFIX = "$"

    @abstractmethod
    def resolve(self) -> Any:
        raise NotImplementedError

    @classmethod
    def is_variable(cls, param: Any) -> bool:
        """Returns True if the param is a variable."""
        result = isinstance(param, str) and param.startswith(cls.VARIABLE_PREFIX)
        return result


class DeployerAccount(Variable):
    DEPLOYER_INDICATOR = "deployer"

    def __init__(self, context: VariableContext):
        self.address = context.deployer_address

    @classmethod
    def is_deployer(cls, value: str) -> bool:
        """Returns True if the variable is a special deployer variable."""
        return value == cls.DEPLOYER_INDICATOR

    def resolve(self) -> Any:
        if self.address is None:
            return ZERO_ADDRESS
        return self.address


class Constant(Variable):
    def __init__(self, constant_name: str, context: VariableContext):
        try:
            self.constant_value = context.constants[constant_name]
        except KeyError:
            raise DeploymentConfigError(f"Constant '{constant_name}' not found in params file.")

    @classmethod
    def is_constant(cls, value: str) -> bool:
        """Returns True if the variable is a deployment constant."""
        return value.isupper()

    def resolve(self) -> Any:
        return self.constant_value


class Record(Variable):
    """A record built from the params file, e.g. the eligibility policy."""

    RECORD_NAMES = ("policy", "initial_lists")

    def __init__(self, record_name: str, context: VariableContext):
        self.record = context.records[record_name]

    @classmethod
    def is_record(cls, value: str, context: VariableContext) -> bool:
        return value in context.records

    def resolve(self) -> Any:
        return self.record


class RegisteredContract(Variable):
    """Address of a previously deployed contract, looked up in the address registry."""

    def __init__(self, contract_name: str, context: VariableContext):
        # looked up eagerly so that a missing entry fails before any transaction
        self.address = context.registry.get_address(context.profile, contract_name)

    def resolve(self) -> Any:
        return self.address


def _resolve_param(value: Any) -> Any:
    """Resolves a single parameter value or a list of parameter values."""
    if isinstance(value, list):
        return [_resolve_param(v) for v in value]

    if isinstance(value, Variable):
        return value.resolve()

    return value  # literally a value


def _resolve_params(parameters: OrderedDict) -> OrderedDict:
    resolved_parameters = OrderedDict()
    for name, value in parameters.items():
        resolved_parameters[name] = _resolve_param(value)

    return resolved_parameters


def _variable_from_value(variable: Any, context: VariableContext) -> Variable:
    variable = variable.strip(Variable.VARIABLE_PREFIX)
    if DeployerAccount.is_deployer(variable):
        return DeployerAccount(context)
    elif Record.is_record(variable, context):
        return Record(variable, context)
    elif variable in Record.RECORD_NAMES:
        raise DeploymentConfigError(
            f"'${variable}' is used but the params file has no '{variable}' section."
        )
    elif Constant.is_constant(variable):
        return Constant(variable, context)
    else:
        return RegisteredContract(variable, context)


def _process_raw_value(value: Any, variable_context: VariableContext) -> Any:
    if isinstance(value, list):
        return [_process_raw_value(v, variable_context) for v in value]

    if Variable.is_variable(value):
        value = _variable_from_value(value, variable_context)

    return value


def _process_raw_values(values: OrderedDict, variable_context: VariableContext) -> OrderedDict:
    processed_parameters = OrderedDict()
    for name, value in values.items():
        processed_parameters[name] = _process_raw_value(value, variable_context)

    return processed_parameters


class InitializerParameters:
    """Represents the proxy initializer calls for a set of contracts."""

    class Invalid(Exception):
        """Raised when the initializer parameters are invalid"""

    class InitializerInfo(typing.NamedTuple):
        function: str
        arguments: OrderedDict

    def __init__(self, initializers: OrderedDict):
        self.initializers = initializers

    @classmethod
    def from_config(
        cls, config: typing.Dict, context: VariableContext
    ) -> "InitializerParameters":
        print("Processing proxy initializer parameters...")
        initializers = OrderedDict()
        for contract_info in config["contracts"]:
            contract_name = list(contract_info.keys())[0]  # only one entry
            contract_data = contract_info[contract_name] or dict()
            initializers[contract_name] = cls._process_initializer(
                contract_name, contract_data, context
            )

        return cls(initializers=initializers)

    @classmethod
    def _process_initializer(
        cls, contract_name: str, contract_data: typing.Dict, context: VariableContext
    ) -> InitializerInfo:
        initializer_data = contract_data.get(CONTRACT_INITIALIZER_PARAMETER_KEY)
        if not isinstance(initializer_data, dict):
            raise cls.Invalid(f"Missing initializer for {contract_name}.")

        function = initializer_data.get(INITIALIZER_FUNCTION_KEY)
        if not function:
            raise cls.Invalid(f"Missing initializer function name for {contract_name}.")

        raw_arguments = initializer_data.get(INITIALIZER_ARGUMENTS_KEY) or dict()
        if not isinstance(raw_arguments, dict):
            raise cls.Invalid(
                f"Initializer arguments for {contract_name} must be a name -> value mapping."
            )

        arguments = _process_raw_values(OrderedDict(raw_arguments), context)
        return cls.InitializerInfo(function=function, arguments=arguments)

    def resolve(self, contract_name: str) -> typing.Tuple[str, OrderedDict]:
        """Resolves the initializer function and arguments for a single contract."""
        try:
            info = self.initializers[contract_name]
        except KeyError:
            raise DeploymentConfigError(f"No initializer configured for {contract_name}")
        return info.function, _resolve_params(info.arguments)


class Transactor:
    """
    Represents an ape account plus validated/annotated transaction execution.
    """

    def __init__(self, account: typing.Optional[AccountAPI] = None, autosign: bool = False):
        if account is None:
            self._account = select_account()
        else:
            self._account = account
        if autosign:
            print("WARNING: Autosign is enabled. Transactions will be signed automatically.")
        self._autosign = autosign
        self._account.set_autosign(autosign)

    def get_account(self) -> AccountAPI:
        """Returns the transactor account."""
        return self._account

    def transact(self, method: ContractTransactionHandler, *args, **kwargs) -> ReceiptAPI:
        base_message = (
            f"\nTransacting {method.contract.contract_type.name}"
            f"[{method.contract.address[:10]}].{method}"
        )
        if args:
            pretty_args = "\n\t".join(str(arg) for arg in args)
            message = f"{base_message} with arguments:\n\t{pretty_args}"
        else:
            message = f"{base_message} with no arguments"
        print(message)
        if not self._autosign:
            _continue()

        return method(*args, sender=self._account, **kwargs)


class ProxyDeployer:
    """
    Deploys upgradeable proxies as described by a params file, resolving the
    initializer arguments against the address registry before anything is sent.
    """

    def __init__(
        self,
        config: typing.Dict,
        path: Path,
        upgrades,
        registry: Optional[AddressRegistry] = None,
        now: Optional[int] = None,
        autosign: bool = False,
        save: bool = False,
    ):
        self.path = path
        self.config = config
        self.upgrades = upgrades
        self.save = save
        self._autosign = autosign

        self.profile = get_network_profile(validate_config(config=self.config))
        self._validate_chain()

        registry_config = config.get("registry") or dict()
        if registry is None:
            registry_filepath = Path(registry_config.get("filepath", REGISTRY_FILEPATH))
            if not registry_filepath.is_absolute():
                registry_filepath = PROJECT_ROOT / registry_filepath
            registry = AddressRegistry.from_file(registry_filepath)
        self.registry = registry

        constants = config.get("constants") or dict()

        self.eligibility_parameters = build_eligibility_parameters(
            PolicyConfig.from_config(config.get("policy")), now=now
        )
        records = {"policy": self.eligibility_parameters}
        if "initial_lists" in config:
            self.initial_lists = build_initial_lists(config["initial_lists"])
            records["initial_lists"] = self.initial_lists

        self.contract_names = get_contract_names(config)
        context = VariableContext(
            profile=self.profile,
            registry=self.registry,
            records=records,
            constants=constants,
            deployer_address=self.upgrades.get_account().address,
        )
        self.initializer_parameters = InitializerParameters.from_config(config, context)

        self._print_deployment_info()
        if not self._autosign:
            # Confirms the start of the deployment.
            _continue()

    @classmethod
    def from_yaml(cls, filepath: Path, *args, **kwargs) -> "ProxyDeployer":
        config = _load_yaml(filepath)
        if not isinstance(config, dict):
            raise DeploymentConfigError(f"Malformed params file {filepath}")
        return cls(config=config, path=filepath, *args, **kwargs)

    def _validate_chain(self) -> None:
        if self.upgrades.profile.name != self.profile.name:
            raise DeploymentConfigError(
                f"Params file {self.path} targets {self.profile.name}, "
                f"not {self.upgrades.profile.name}."
            )
        validate_network_choice(self.profile, self.upgrades.network_choice)
        config_chain_id = int(self.config["deployment"]["chain_id"])
        if config_chain_id != self.profile.chain_id:
            raise DeploymentConfigError(
                f"chain_id in params file ({config_chain_id}) does not match "
                f"the {self.profile.name} chain_id ({self.profile.chain_id})."
            )
        live_deployment = not self.upgrades.is_local
        if live_deployment and self.upgrades.chain_id != config_chain_id:
            raise DeploymentConfigError(
                f"chain_id in params file ({config_chain_id}) does not match "
                f"chain_id of current network ({self.upgrades.chain_id})."
            )

    def deploy(self, contract_name: str) -> ContractInstance:
        """Deploys a new proxy for ``contract_name``; re-running always creates another."""
        if contract_name not in self.contract_names:
            raise DeploymentConfigError(f"{contract_name} is not configured in {self.path}")

        print(f"\n{contract_name} params: {to_json(self.eligibility_parameters)}")
        if "initial_lists" in self.config:
            print(f"{contract_name} initial lists: {to_json(self.initial_lists)}")

        initializer, resolved_arguments = self.initializer_parameters.resolve(contract_name)
        if self._autosign:
            _print_resolution(resolved_arguments, initializer, contract_name)
        else:
            _confirm_resolution(resolved_arguments, initializer, contract_name)

        container = self.upgrades.get_contract_factory(contract_name)
        proxy = self.upgrades.deploy_proxy(
            container, list(resolved_arguments.values()), initializer=initializer
        )
        print(f"{contract_name} proxy deployed at {proxy.address}")
        return proxy

    def finalize(self, deployments: typing.Dict[str, ContractInstance]) -> None:
        """Optionally records the deployed proxy addresses in the address registry."""
        if not self.save:
            return
        for contract_name, instance in deployments.items():
            self.registry.record_address(self.profile, contract_name, instance.address)
        output_filepath = self.registry.write()
        print(f"(i) Registry written to {output_filepath}!")

    def _print_deployment_info(self):
        print(
            f"Account: {self.upgrades.get_account().address}",
            f"Config: {self.path}",
            f"Registry: {self.registry.filepath}",
            f"Network: {self.profile.name}",
            f"Chain ID: {self.profile.chain_id}",
            f"Contracts: {', '.join(self.contract_names)}",
            sep="\n",
        )
