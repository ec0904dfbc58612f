import json
import shutil
from collections import OrderedDict
from pathlib import Path
from typing import Dict, Optional

from eth_typing import ChecksumAddress
from eth_utils import is_address, to_checksum_address

from deployment.constants import REGISTRY_FILEPATH
from deployment.networks import NetworkProfile
from deployment.utils import DeploymentConfigError, _load_json

ContractName = str
RegistryKey = str


STANDARD_REGISTRY_JSON_FORMAT = {"indent": 4, "separators": (",", ": ")}


class AddressRegistry:
    """
    Deployed contract addresses grouped by network, e.g.

        {"amoyAddresses": {"TD3QueryProofVerifier": "0x..."}}

    """

    class MissingNetwork(DeploymentConfigError):
        """Raised when the registry has no section for a network"""

    class MissingContract(DeploymentConfigError):
        """Raised when a network section has no entry for a contract"""

    def __init__(
        self,
        data: Dict[RegistryKey, Dict[ContractName, str]],
        filepath: Optional[Path] = None,
    ):
        self.data = data
        self.filepath = filepath

    @classmethod
    def from_file(cls, filepath: Path = REGISTRY_FILEPATH) -> "AddressRegistry":
        filepath = Path(filepath)
        if not filepath.exists():
            raise DeploymentConfigError(f"No address registry found at {filepath}")
        data = _load_json(filepath)
        if not isinstance(data, dict):
            raise DeploymentConfigError(f"Malformed address registry at {filepath}")
        return cls(data=data, filepath=filepath)

    def section(self, profile: NetworkProfile) -> Dict[ContractName, str]:
        """Returns all registered addresses for a network."""
        try:
            section = self.data[profile.registry_key]
        except KeyError:
            raise self.MissingNetwork(
                f"No '{profile.registry_key}' section for {profile.name} "
                f"in address registry {self.filepath}"
            )
        if not isinstance(section, dict):
            raise self.MissingNetwork(f"Malformed '{profile.registry_key}' section")
        return section

    def get_address(self, profile: NetworkProfile, contract_name: ContractName) -> ChecksumAddress:
        section = self.section(profile)
        try:
            address = section[contract_name]
        except KeyError:
            raise self.MissingContract(
                f"{contract_name} is not registered for {profile.name} "
                f"(section '{profile.registry_key}')"
            )
        if not is_address(address):
            raise DeploymentConfigError(
                f"Registered address for {contract_name} on {profile.name} is invalid: {address}"
            )
        return to_checksum_address(address)

    def record_address(
        self, profile: NetworkProfile, contract_name: ContractName, address: str
    ) -> None:
        """Adds or replaces a contract address in a network section."""
        section = self.data.setdefault(profile.registry_key, dict())
        previous = section.get(contract_name)
        if previous:
            print(f"(i) Replacing {contract_name} at {previous} on {profile.name}.")
        section[contract_name] = to_checksum_address(address)

    def to_dict(self) -> Dict[RegistryKey, Dict[ContractName, str]]:
        data = OrderedDict()
        for registry_key in sorted(self.data):
            data[registry_key] = OrderedDict(sorted(self.data[registry_key].items()))
        return data

    def write(self, filepath: Optional[Path] = None) -> Path:
        """Writes the registry in the standard JSON format."""
        filepath = Path(filepath or self.filepath or REGISTRY_FILEPATH)
        filepath.parent.mkdir(parents=True, exist_ok=True)
        with open(filepath, "w") as file:
            json.dump(self.to_dict(), file, **STANDARD_REGISTRY_JSON_FORMAT)
            file.write("\n")
        self.filepath = filepath
        return filepath


def normalize_registry(filepath: Path):
    """Normalizes a potentially non-standard address registry file."""
    try:
        registry = AddressRegistry.from_file(filepath=filepath)
    except Exception:
        print(f"Error when reading registry at {filepath}.")
        raise

    try:
        temp_filepath = filepath.with_suffix(".temp.json")
        registry.write(filepath=temp_filepath)
        shutil.copy(temp_filepath, filepath)
        temp_filepath.unlink()
        print(f"Successfully normalized registry at {filepath}.")
    except Exception:
        print(f"Error when normalizing registry at {filepath}.")
        raise
