"""Shared constants for cy2pw.

Values used across the converter packages and the CLI, kept in one place so
defaults stay consistent between settings, the YAML file and the code.
"""

# =============================================================================
# Output
# =============================================================================

# Directory (under the output root) receiving converted and preserved tests
DEFAULT_OUTPUT_DIR = "tests"

# Converted test files use the Playwright suffix
CYPRESS_SUFFIX = ".cy."
PLAYWRIGHT_SUFFIX = ".spec."

# Leading source directories dropped when mirroring paths, longest first
CYPRESS_PATH_PREFIXES = (
    "cypress/e2e/",
    "cypress/integration/",
    "e2e/",
    "integration/",
    "cypress/",
)

# =============================================================================
# Conversion
# =============================================================================

DEFAULT_TEST_ID_ATTRIBUTE = "data-testid"

DEFAULT_BROWSERS = ("chromium",)
SUPPORTED_BROWSERS = ("chromium", "firefox", "webkit")

# Project directories scanned for Cypress.Commands.add definitions
DEFAULT_SUPPORT_DIRS = ("cypress/support",)

# =============================================================================
# CLI exit codes
# =============================================================================

EXIT_OK = 0
EXIT_BELOW_THRESHOLD = 1
EXIT_FATAL = 2
