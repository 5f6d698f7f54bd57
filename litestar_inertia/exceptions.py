"""Litestar-Inertia exception classes."""

__all__ = [
    "EntryMissingError",
    "LitestarInertiaError",
    "ManifestNotFoundError",
]


class LitestarInertiaError(Exception):
    """Base exception for Litestar-Inertia related errors."""


class ManifestNotFoundError(LitestarInertiaError):
    """Raised when the manifest file cannot be read or parsed."""

    def __init__(self, manifest_path: str) -> None:
        super().__init__(f"Vite manifest file not found at {manifest_path!r}. Did you forget to build your assets?")
        self.manifest_path = manifest_path


class EntryMissingError(LitestarInertiaError):
    """Raised when the requested entry point is not present in the manifest."""

    def __init__(self, entry: str) -> None:
        super().__init__(f"Vite manifest is missing an entry for {entry!r}.")
        self.entry = entry
