"""
Centralized constants for lip.

This module defines immutable configuration values used across lip,
including repository endpoints, on-disk layout, network settings, and
logging formats. All values are intended to be treated as read-only.
"""

from typing import Final

# ---------------------------------------------------------------------------
# Project metadata
# ---------------------------------------------------------------------------

#: HTTP User-Agent template used for outbound requests.
USER_AGENT_TEMPLATE: Final[str] = "lip/{version} (https://github.com/lippkg/lip)"

# ---------------------------------------------------------------------------
# Tooth repositories (GOPROXY)
# ---------------------------------------------------------------------------

#: GOPROXY used when neither the config file nor ``GOPROXY`` sets one.
DEFAULT_GOPROXY: Final[str] = "https://goproxy.io"

#: Version list endpoint, relative to the GOPROXY base URL.
GOPROXY_LIST_TEMPLATE: Final[str] = "{goproxy}/{path}/@v/list"

#: Archive download endpoint, relative to the GOPROXY base URL.
GOPROXY_ZIP_TEMPLATE: Final[str] = "{goproxy}/{path}/@v/v{version}.zip"

#: Suffix Go appends to tags of major version 2+ without a ``/vN`` path.
INCOMPATIBLE_SUFFIX: Final[str] = "+incompatible"

# ---------------------------------------------------------------------------
# Tooth files
# ---------------------------------------------------------------------------

#: Name of the metadata entry embedded in every tooth archive.
METADATA_FILE_NAME: Final[str] = "tooth.json"

#: File extension of standalone tooth archives.
TOOTH_FILE_SUFFIX: Final[str] = ".tth"

#: Only ``tooth.json`` format version understood by this client.
SUPPORTED_FORMAT_VERSION: Final[int] = 1

# ---------------------------------------------------------------------------
# On-disk layout
# ---------------------------------------------------------------------------

#: Directory (relative to the workspace) that holds lip's own state.
LIP_DIR_NAME: Final[str] = ".lip"

#: Directory (relative to ``.lip``) holding one record file per tooth.
RECORDS_DIR_NAME: Final[str] = "records"

#: Record file extension.
RECORD_FILE_SUFFIX: Final[str] = ".json"

#: Longest percent-encoded cache key used verbatim as a file name; longer
#: keys are stored under their SHA-256 digest.
MAX_CACHE_NAME_LENGTH: Final[int] = 200

#: Extension of the file holding the key of a digest-named cache entry.
CACHE_KEY_SUFFIX: Final[str] = ".key"

#: Prefix of temporary staging directories used during installation.
STAGING_DIR_PREFIX: Final[str] = "staging-"

# ---------------------------------------------------------------------------
# HTTP configuration
# ---------------------------------------------------------------------------

#: Default network timeout in seconds.
DEFAULT_TIMEOUT: Final[int] = 30

#: Maximum number of retries for failed HTTP requests.
DEFAULT_MAX_RETRIES: Final[int] = 3

#: Chunk size used when streaming archive downloads.
DOWNLOAD_CHUNK_SIZE: Final[int] = 64 * 1024

# ---------------------------------------------------------------------------
# Security constraints
# ---------------------------------------------------------------------------

#: Maximum allowed size (in bytes) when reading record or config files.
MAX_FILE_SIZE: Final[int] = 10 * 1024 * 1024  # 10 MB

# ---------------------------------------------------------------------------
# Logging configuration
# ---------------------------------------------------------------------------

#: Timestamp format for verbose logging.
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

#: Default log format (non-verbose).
LOG_DEFAULT_FORMAT: Final[str] = "%(levelname)s: %(message)s"

#: Verbose log format including timestamp and logger name.
LOG_VERBOSE_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
