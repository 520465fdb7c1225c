"""
Error types raised while resolving and annotating assets.

Every error aborts the evaluation of the single value being transformed;
the host decides whether that fails the whole run.
"""


class AssetsError(Exception):
    """Base class for all css-assets failures."""


class AssetNotFoundError(AssetsError):
    def __init__(self, reference: str, searched=None):
        self.reference = reference
        self.searched = list(searched or [])
        super().__init__(f"Asset not found or unreadable: {reference}")


class ImageCorruptedError(AssetsError):
    def __init__(self, path: str, reason: str = ""):
        self.path = path
        message = f"Image corrupted: {path}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class InvalidArgumentsError(AssetsError):
    pass


class UnsupportedMediaError(AssetsError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Unsupported media type, cannot inline: {path}")


class ConfigurationError(AssetsError):
    pass
