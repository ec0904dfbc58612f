"""
Eligibility policy records handed to the Zikuani proxy initializers.

Policy values are supplied by the ``policy`` and ``initial_lists`` sections of a
params YAML file; omitted policy values fall back to the example policy
(adults holding a Costa Rican credential that is valid past 2026).
"""

import datetime
import json
import time
import typing
from typing import Any, Dict, List, NamedTuple, Optional, Union

from eth_typing import ChecksumAddress
from eth_utils import is_address, to_checksum_address

from deployment.constants import ONE_DAY, ONE_YEAR

CountryCode = Union[str, int]

MAX_COUNTRY_CODE = 2**24 - 1


class PolicyError(ValueError):
    """Raised when a policy value cannot be turned into an initializer parameter"""


class EligibilityParameters(NamedTuple):
    """Identity constraints checked against a query proof, in struct order."""

    identity_creation_timestamp_upper_bound: int
    citizenship_whitelist: List[int]
    birth_date_lowerbound: int
    expiration_date_lower_bound: int
    identity_counter_upper_bound: int


class InitialLists(NamedTuple):
    whitelist: List[ChecksumAddress]
    blacklist: List[ChecksumAddress]
    nationality_whitelist: List[int]


# python field name -> solidity field name
ABI_FIELD_NAMES = {
    "identity_creation_timestamp_upper_bound": "identityCreationTimestampUpperBound",
    "citizenship_whitelist": "citizenshipWhitelist",
    "birth_date_lowerbound": "birthDateLowerbound",
    "expiration_date_lower_bound": "expirationDateLowerBound",
    "identity_counter_upper_bound": "identityCounterUpperBound",
    "whitelist": "whitelist",
    "blacklist": "blacklist",
    "nationality_whitelist": "nationalityWhitelist",
}


class PolicyConfig(NamedTuple):
    identity_creation_window_days: int = 30
    minimum_age_years: int = 18
    expiration_date_lower_bound: Union[str, datetime.date] = "2026-01-01"
    identity_counter_upper_bound: int = 1
    citizenship_whitelist: typing.Tuple[CountryCode, ...] = ("CRI",)

    @classmethod
    def from_config(cls, section: Optional[Dict[str, Any]]) -> "PolicyConfig":
        section = dict(section or {})
        unknown = set(section) - set(cls._fields)
        if unknown:
            raise PolicyError(f"Unknown policy field(s): {', '.join(sorted(unknown))}")
        if "citizenship_whitelist" in section:
            section["citizenship_whitelist"] = tuple(section["citizenship_whitelist"] or ())
        return cls(**section)


def encode_country_code(code: CountryCode) -> int:
    """
    Encodes an ISO 3166-1 alpha-3 code as the 24-bit integer
    of its ASCII bytes, e.g. "CRI" -> 0x435249.
    """
    if isinstance(code, bool):
        raise PolicyError(f"Invalid country code: {code}")
    if isinstance(code, int):
        if not 0 <= code <= MAX_COUNTRY_CODE:
            raise PolicyError(f"Country code {code} does not fit in 24 bits")
        return code
    if not isinstance(code, str) or len(code) != 3 or not (code.isascii() and code.isalpha()):
        raise PolicyError(f"Invalid country code: {code!r}")
    return int.from_bytes(code.upper().encode("ascii"), byteorder="big")


def date_to_timestamp(value: Union[str, datetime.date]) -> int:
    """Returns the unix timestamp of midnight UTC on the given date."""
    if isinstance(value, datetime.datetime):
        value = value.date()
    if isinstance(value, str):
        try:
            value = datetime.date.fromisoformat(value)
        except ValueError:
            raise PolicyError(f"Invalid date '{value}', expected YYYY-MM-DD")
    if not isinstance(value, datetime.date):
        raise PolicyError(f"Invalid date {value!r}, expected YYYY-MM-DD")
    midnight = datetime.datetime.combine(value, datetime.time(0, 0), tzinfo=datetime.timezone.utc)
    return int(midnight.timestamp())


def build_eligibility_parameters(
    policy: PolicyConfig, now: Optional[int] = None
) -> EligibilityParameters:
    """Derives the time-relative bounds of a policy from the reference time ``now``."""
    if now is None:
        now = int(time.time())

    return EligibilityParameters(
        identity_creation_timestamp_upper_bound=now
        + policy.identity_creation_window_days * ONE_DAY,
        citizenship_whitelist=[encode_country_code(c) for c in policy.citizenship_whitelist],
        # 365-day years
        birth_date_lowerbound=now - policy.minimum_age_years * ONE_YEAR,
        expiration_date_lower_bound=date_to_timestamp(policy.expiration_date_lower_bound),
        identity_counter_upper_bound=int(policy.identity_counter_upper_bound),
    )


def _checksum_addresses(name: str, addresses: Optional[List[str]]) -> List[ChecksumAddress]:
    checksummed = list()
    for address in addresses or []:
        if not is_address(address):
            raise PolicyError(f"Invalid address in {name}: {address}")
        checksummed.append(to_checksum_address(address))
    return checksummed


def build_initial_lists(section: Optional[Dict[str, Any]]) -> InitialLists:
    section = section or dict()
    unknown = set(section) - set(InitialLists._fields)
    if unknown:
        raise PolicyError(f"Unknown initial list(s): {', '.join(sorted(unknown))}")

    return InitialLists(
        whitelist=_checksum_addresses("whitelist", section.get("whitelist")),
        blacklist=_checksum_addresses("blacklist", section.get("blacklist")),
        nationality_whitelist=[
            encode_country_code(c) for c in section.get("nationality_whitelist") or []
        ],
    )


def to_abi_dict(record: NamedTuple) -> Dict[str, Any]:
    return {ABI_FIELD_NAMES[name]: value for name, value in record._asdict().items()}


def to_json(record: NamedTuple) -> str:
    return json.dumps(to_abi_dict(record), indent=2)
