"""Constants shared across surecast modules."""

# ENS contracts on Ethereum mainnet
ENS_REGISTRY = "0x00000000000C2E074eC69A0dFb2997BA6C7d2e1e"
ENS_PUBLIC_RESOLVER = "0x231b0Ee14048e9dCcD1d247744d114a4EB5E8E63"
ENS_CHAIN_ID = 1

# Text record keys
WORKFLOW_KEY_PREFIX = "com.surecast.workflow."
MANIFEST_KEY = "com.surecast.workflows"
LEGACY_WORKFLOW_KEY = "com.surecast.workflow"

SLUG_MAX_LENGTH = 32
SERIALIZATION_VERSION = 1

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

DEFAULT_WORKFLOW_NAME = "Untitled Workflow"
DEFAULT_SLIPPAGE_PERCENT = 0.5

# Provider error code returned when the wallet does not know a chain
UNKNOWN_CHAIN_ERROR_CODE = 4902
