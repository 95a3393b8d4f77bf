"""Standardized error codes."""

from enum import Enum


class ErrorCode(str, Enum):
    """Error codes shared by the core, the web layer and the CLI."""

    GENERAL_ERROR = "GENERAL_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    INVALID_QUERY = "INVALID_QUERY"

    # providers
    PROVIDER_ERROR = "PROVIDER_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    SOURCE_UNAVAILABLE = "SOURCE_UNAVAILABLE"
    SOURCE_NOT_FOUND = "SOURCE_NOT_FOUND"

    # funding log storage
    STORAGE_ERROR = "STORAGE_ERROR"
    LOG_WRITE_FAILED = "LOG_WRITE_FAILED"
    LOG_FILE_NOT_FOUND = "LOG_FILE_NOT_FOUND"
    MALFORMED_LOG_LINE = "MALFORMED_LOG_LINE"
