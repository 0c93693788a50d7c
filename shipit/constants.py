"""
shipit Constants

Defaults shared by the config resolver, the init template and the CLI.
"""

# =============================================================================
# CONFIGURATION DEFAULTS
# =============================================================================

DEFAULT_CONFIG_FILE = "shipit.json"
DEFAULT_PORT = 22
DEFAULT_PASSWORD = ""
DEFAULT_REMOTE_FOLDER = "/tmp/binaries/"
DEFAULT_PROFILE = "release"
DEBUG_PROFILE_DIR = "debug"

# =============================================================================
# INIT TEMPLATE (embedded Linux target)
# =============================================================================

TEMPLATE_HOST = "embedded-linux-target"
TEMPLATE_USERNAME = "root"
TEMPLATE_PASSWORD = "password"
TEMPLATE_TARGET = "armv7-unknown-linux-gnueabihf"
TEMPLATE_TARGET_SUBDIR = "target/"

# =============================================================================
# BUILD SYSTEM
# =============================================================================

PROJECT_DESCRIPTOR = "Cargo.toml"
BUILD_TOOL = "cargo"
RELEASE_PROFILE = "release"
BINARY_TARGET_KIND = "bin"

# =============================================================================
# REMOTE
# =============================================================================

EXECUTABLE_MODE = 0o755
CONNECT_TIMEOUT = 10  # seconds
PUBLIC_KEY_SUFFIX = ".pub"

# =============================================================================
# EXIT CODES
# =============================================================================

EXIT_INTERRUPTED = 130

# =============================================================================
# LOGGING
# =============================================================================

LOG_DIR_ENV = "SHIPIT_LOG_DIR"
