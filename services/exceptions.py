"""
services/exceptions.py – Structured custom exception hierarchy for TDBMeta.

All service-level errors derive from TDBMetaError so callers can catch broadly
or specifically depending on context.

"Not found" outcomes (no valid ID6, no catalog match, no cover at a URL) are
NOT exceptions; services return None for those.
"""


class TDBMetaError(Exception):
    """Base class for all TDBMeta exceptions."""


class CatalogError(TDBMetaError):
    """Raised when the GameTDB catalog cannot be read or parsed."""


class DownloadError(TDBMetaError):
    """Raised when a download fails for any reason other than a missing asset."""


class ExtractionError(TDBMetaError):
    """Raised when the catalog archive cannot be extracted."""


class StorageError(TDBMetaError):
    """Raised on filesystem errors while installing the catalog file."""


class HelperNotFoundError(TDBMetaError):
    """
    Raised when the external ID6 helper (wit) is not where it is expected.

    This is a configuration error: it is reported to the caller and never
    retried.

    Attributes
    ----------
    helper_path : The path that was probed, or None if none was configured.
    """

    def __init__(self, helper_path=None, message: str = "") -> None:
        self.helper_path = helper_path
        super().__init__(
            message
            or f"ID6 helper executable not found: {helper_path}. "
            "Install Wiimms ISO Tools or set TDBMETA_WIT."
        )


class ImageProcessingError(TDBMetaError):
    """Raised when downloaded cover data cannot be decoded or re-encoded."""
