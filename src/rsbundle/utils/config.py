"""
Configuration constants to replace magic strings throughout rsbundle
"""

# Module path constants
MODULE_SEPARATOR = "::"
CRATE_ROOT_SEGMENT = "crate"
MACRO_CRATE_SEGMENT = "$crate"
SELF_SEGMENT = "self"
SUPER_SEGMENT = "super"
GLOB_SEGMENT = "*"
RAW_IDENTIFIER_PREFIX = "r#"

# Module file resolution constants
SOURCE_FILE_EXTENSION = ".rs"
MOD_FILE_NAME = "mod.rs"
PATH_ATTRIBUTE = "path"

# Crate entry points (relative to the crate directory)
LIB_ROOT_FILE = "src/lib.rs"
BIN_ROOT_FILE = "src/main.rs"

# File encoding constants
DEFAULT_FILE_ENCODING = "utf-8"

# Logging / diagnostics (read by the command line entry point only)
LOG_LEVEL_ENV_VAR = "RSBUNDLE_LOG"
COLOR_ENV_VAR = "RSBUNDLE_COLOR"
DEFAULT_LOG_LEVEL = "WARNING"
LOG_FORMAT = "[%(levelname)s %(name)s] %(message)s"
