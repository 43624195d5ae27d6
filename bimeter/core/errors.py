# bimeter/core/errors.py
from __future__ import annotations


class MeterError(Exception):
    """
    Base class for all expected setup/operational errors in bimeter.

    Message processing itself never raises; these cover loading metadata,
    options and captures.
    """

    #: Stable machine-readable identifier (for CLI exit mapping, logs, etc.)
    code: str = "unknown"

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Configuration / setup errors
# ---------------------------------------------------------------------------

class MetadataConfigError(MeterError):
    """
    Datapoint metadata is missing or inconsistent.

    Examples:
      - devices.yml not found
      - datapoint mapped to an unknown kind or channel
      - unknown device model requested
    """
    code = "metadata_config_error"


class OptionsError(MeterError):
    """
    Reassembly options are invalid.

    Examples:
      - unknown option key
      - missing_data_behavior not one of the known dispositions
      - non-boolean value for a boolean option
    """
    code = "options_error"


# ---------------------------------------------------------------------------
# Input errors
# ---------------------------------------------------------------------------

class CaptureFormatError(MeterError):
    """
    A recorded message capture could not be parsed.

    Examples:
      - line is not valid JSON
      - message without datapoint id or sequence number
    """
    code = "capture_format_error"
