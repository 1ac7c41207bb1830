"""Constants for license-auditor."""

# Exit codes
EXIT_SUCCESS = 0  # No issues found
EXIT_ISSUES = 1  # License issues found
EXIT_ERROR = 2  # Audit failed due to error

# Provenance tags attached to every extracted license
LICENSE_SOURCE_PACKAGE_JSON_LICENSE = "package.json-license"
LICENSE_SOURCE_PACKAGE_JSON_LICENSES = "package.json-licenses"
LICENSE_SOURCE_PACKAGE_JSON_EXPRESSION = "package.json-license-expression"
LICENSE_SOURCE_PACKAGE_JSON_LEGACY = "package.json-legacy"
LICENSE_SOURCE_FILE_CONTENT = "license-file-content"
LICENSE_SOURCE_FILE_KEYWORDS = "license-file-content-keywords"
LICENSE_SOURCE_PYTHON_EXPRESSION = "python-metadata-license-expression"
LICENSE_SOURCE_PYTHON_LICENSE_FIELD = "python-metadata-license-field"
LICENSE_SOURCE_PYTHON_CLASSIFIER = "python-metadata-classifier"
LICENSE_SOURCE_PYTHON_CLASSIFIER_MAPPED = "python-metadata-classifier-mapped"
LICENSE_SOURCE_PYPI_METADATA = "python-pypi-metadata"

# Node manifest and package-manager markers
PACKAGE_JSON = "package.json"
NODE_MODULES = "node_modules"
PNPM_WORKSPACE_FILE = "pnpm-workspace.yaml"
PNP_MARKER_FILE = ".pnp.cjs"
WORKSPACE_WALK_SKIP_DIRS = frozenset({"node_modules", ".git", ".turbo"})

NODE_ECOSYSTEM_MARKERS = (
    "package.json",
    "node_modules",
    "package-lock.json",
    "pnpm-lock.yaml",
    "yarn.lock",
    "bun.lock",
    "bun.lockb",
)

PYTHON_ECOSYSTEM_MARKERS = (
    "pyproject.toml",
    "uv.lock",
    "requirements.txt",
    ".venv",
)

# Python sources
UV_LOCK_FILE = "uv.lock"
REQUIREMENTS_FILE = "requirements.txt"
REQUIREMENTS_DIR = "requirements"

# Subprocess timeouts (seconds)
UV_EXPORT_TIMEOUT = 30.0
INTERPRETER_CHECK_TIMEOUT = 8.0
INTROSPECTION_TIMEOUT = 30.0

# PyPI enrichment
PYPI_BASE_URL = "https://pypi.org/pypi"
PYPI_REQUEST_TIMEOUT = 10.0
PYPI_MAX_CONCURRENT_REQUESTS = 8

PRODUCTION_BEST_EFFORT_WARNING = (
    "Python --production mode is best-effort. Precise dev dependency "
    "exclusion is guaranteed only for uv.lock export mode."
)
