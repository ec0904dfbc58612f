from pathlib import Path

import deployment

#
# Filesystem
#

DEPLOYMENT_DIR = Path(deployment.__file__).parent
PROJECT_ROOT = DEPLOYMENT_DIR.parent
INITIALIZER_PARAMS_DIR = DEPLOYMENT_DIR / "initializer_params"
REGISTRY_FILEPATH = PROJECT_ROOT / "deployed-contracts" / "ethereum.json"

#
# Networks
#

LOCALHOST = "localhost"
AMOY = "amoy"
BLOCKDAG_TESTNET = "blockdag-testnet"

SUPPORTED_NETWORKS = [LOCALHOST, AMOY, BLOCKDAG_TESTNET]

#
# Signing credential
#

PRIVATE_KEY_ENVVAR = "ETHEREUM_ADDRESS_PRIVATE_KEY"
PASSPHRASE_ENVVAR = "DEPLOYER_PASSPHRASE"
# Placeholder only; never valid for a live network
DEFAULT_PRIVATE_KEY = "0xAAAAAAAA"
DEPLOYER_ALIAS = "ZIKUANI_DEPLOYER"

#
# Contracts
#

ZIKUANI_VOTE = "ZikuaniVote"
ZIKUANI_BLACKLIST_TRANSFER = "ZikuaniBlacklistTransfer"

CREDENTIAL_ISSUER = "ZKFirmaDigitalCredentialIssuer"
QUERY_PROOF_VERIFIER = "TD3QueryProofVerifier"
REGISTRATION_SMT = "RegistrationSMTReplicator"

PROXY_CONTRACTS = [ZIKUANI_VOTE, ZIKUANI_BLACKLIST_TRANSFER]

OZ_DEPENDENCY_NAME = "openzeppelin"
OZ_DEPENDENCY_VERSION = "5.0.0"

# EIP1967 Admin slot - https://eips.ethereum.org/EIPS/eip-1967#admin-address
EIP1967_ADMIN_SLOT = 0xB53127684A568B3173AE13B9F8A6016E243E63B6E8EE1178D6A717850B5D6103

#
# Proofs
#

# Disclosed-field mask baked into the query proof artifact (0xA21)
SELECTOR_BITMASK = 2593
SELECTOR_BITMASK_CONSTANT = "SELECTOR_BITMASK"

#
# Time
#

ONE_DAY = 24 * 60 * 60
ONE_YEAR = 365 * ONE_DAY
