import json
import os
from pathlib import Path
from typing import Dict, List

import yaml
from ape import networks, project
from ape.contracts import ContractContainer

from deployment.constants import (
    PROXY_CONTRACTS,
    SELECTOR_BITMASK,
    SELECTOR_BITMASK_CONSTANT,
    SUPPORTED_NETWORKS,
)


class DeploymentConfigError(ValueError):
    """Raised when a deployment cannot proceed with the given configuration."""


def _load_yaml(filepath: Path) -> dict:
    """Loads a YAML file."""
    with open(filepath, "r") as file:
        return yaml.safe_load(file)


def _load_json(filepath: Path) -> dict:
    """Loads a JSON file."""
    with open(filepath, "r") as file:
        return json.load(file)


def validate_config(config: Dict) -> str:
    """
    Checks the structure of a params file and returns the
    name of the target network it was written for.
    """
    print("Validating parameters YAML...")

    deployment = config.get("deployment")
    if not deployment:
        raise DeploymentConfigError("deployment is not set in params file.")

    network_name = deployment.get("network")
    if network_name not in SUPPORTED_NETWORKS:
        raise DeploymentConfigError(
            f"network in params file ({network_name}) must be one of "
            f"{', '.join(SUPPORTED_NETWORKS)}."
        )

    if not deployment.get("chain_id"):
        raise DeploymentConfigError("chain_id is not set in params file.")

    contracts = config.get("contracts")
    if not contracts:
        raise DeploymentConfigError("Params file missing 'contracts' field.")

    constants = config.get("constants") or dict()
    selector_bitmask = constants.get(SELECTOR_BITMASK_CONSTANT)
    if selector_bitmask != SELECTOR_BITMASK:
        raise DeploymentConfigError(
            f"{SELECTOR_BITMASK_CONSTANT} in params file ({selector_bitmask}) does not match "
            f"the bitmask used when building proofs ({SELECTOR_BITMASK})."
        )

    return network_name


def get_contract_names(config: Dict) -> List[str]:
    contract_names = list()
    for contract_info in config["contracts"]:
        if not isinstance(contract_info, dict) or len(contract_info) != 1:
            raise DeploymentConfigError("Malformed contracts section in params YAML.")
        contract_name = list(contract_info.keys())[0]  # only one entry
        if contract_name not in PROXY_CONTRACTS:
            raise DeploymentConfigError(f"Unexpected contract to proxy: {contract_name}")
        contract_names.append(contract_name)

    return contract_names


def check_etherscan_plugin() -> None:
    """
    Checks that the ape-etherscan plugin is installed and that
    the appropriate API key environment variable is set.
    """
    try:
        from ape_etherscan.utils import API_KEY_ENV_KEY_MAP
    except ImportError:
        raise ImportError("Please install the ape-etherscan plugin to use this script.")
    ecosystem_name = networks.provider.network.ecosystem.name
    explorer_envvar = API_KEY_ENV_KEY_MAP.get(ecosystem_name)
    api_key = os.environ.get(explorer_envvar)
    if not api_key:
        raise ValueError(f"{explorer_envvar} is not set.")


def check_plugins(verify: bool, local: bool) -> None:
    print("Checking plugins...")
    if verify and not local:
        check_etherscan_plugin()


def _get_dependency_contract_container(contract: str) -> ContractContainer:
    for dependency_name, dependency_versions in project.dependencies.items():
        if len(dependency_versions) > 1:
            raise ValueError(f"Ambiguous {dependency_name} dependency for {contract}")
        try:
            dependency_api = list(dependency_versions.values())[0]
            contract_container = getattr(dependency_api, contract)
            return contract_container
        except AttributeError:
            continue
    raise ValueError(f"No contract found with name '{contract}'.")


def get_contract_container(contract: str) -> ContractContainer:
    try:
        contract_container = getattr(project, contract)
    except AttributeError:
        # not in root project; check dependencies
        contract_container = _get_dependency_contract_container(contract)

    return contract_container
