"""Custom exceptions for depsentinel."""


class ScanError(Exception):
    """Base exception for scan-level failures."""


class ProjectNotFoundError(ScanError):
    """Raised when the project root does not exist or is not a directory."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"project path does not exist or is not a directory: {path}")


class ManifestParseError(ScanError):
    """Raised by a manifest parser when a file cannot be interpreted at all.

    Always caught by the dependency collector and recorded as a ParseFailure.
    """
