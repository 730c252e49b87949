"""Application-wide constants for dmn-engine.

Constants that define engine behavior.
For user-configurable settings per deployment, see config.py.
"""

from platformdirs import user_config_dir

# ============================================================================
# Configuration Location
# ============================================================================

APP_NAME: str = "dmn-engine"

# OS-specific config directory:
# - macOS: ~/Library/Application Support/dmn-engine/
# - Linux: ~/.config/dmn-engine/
# - Windows: %APPDATA%\dmn-engine\
CONFIG_DIR: str = user_config_dir(APP_NAME)

CONFIG_FILE_NAME: str = "dmn_engine_config.json"

# ============================================================================
# DMN Model Parsing
# ============================================================================

# Namespaces of the DMN versions the structural parser understands.
# Elements are matched by local name, so this is informational for the
# namespace recorded on the ModelHandle.
DMN_NAMESPACES: tuple[str, ...] = (
    "http://www.omg.org/spec/DMN/20151101/dmn.xsd",  # DMN 1.1
    "http://www.omg.org/spec/DMN/20180521/MODEL/",  # DMN 1.2
    "https://www.omg.org/spec/DMN/20191111/MODEL/",  # DMN 1.3
)

# Label used for models read from a stream or raw bytes without a name
ANONYMOUS_SOURCE_LABEL: str = "<stream>"

# ============================================================================
# Decision Logic
# ============================================================================

# Logic variants the compiler can turn into an executable decision.
# Every other variant is rejected with UnsupportedLogicError.
SUPPORTED_LOGIC_VARIANTS: frozenset[str] = frozenset({"decisionTable"})

# Hit policy used when a decision table omits the hitPolicy attribute
DEFAULT_HIT_POLICY: str = "UNIQUE"

# ============================================================================
# Compile Cache
# ============================================================================

# Number of compiled decisions kept per engine instance
DEFAULT_CACHE_CAPACITY: int = 256

# Capacity validation range
MIN_CACHE_CAPACITY: int = 1
MAX_CACHE_CAPACITY: int = 100_000

# ============================================================================
# Error Reporting
# ============================================================================

# Context snapshots attached to ExpressionError are truncated per value
# so error messages stay readable for large inputs
MAX_CONTEXT_SNAPSHOT_VALUE_LENGTH: int = 200
