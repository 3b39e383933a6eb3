"""Error kinds raised by the extraction engine.

Configuration and connectivity errors abort an extraction. Extraction errors
and attach conflicts are recoverable: the orchestrator and the catalog
lifecycle absorb them and continue.
"""


class DbExtractError(RuntimeError):
    """Base class for all dbextract errors."""


class ConfigurationError(DbExtractError):
    """Raised when a connection or config file is incomplete or unsafe."""


class ConnectivityError(DbExtractError):
    """Raised when a session cannot be opened or an engine statement fails."""


class ExtractionError(DbExtractError):
    """Raised by an extractor step; triggers the next fallback step."""


class AttachConflict(DbExtractError):
    """Raised when a catalog is already attached to the session."""
