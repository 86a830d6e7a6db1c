class StorageError(Exception):
    """Base exception for file storage errors."""


class UnsupportedStorageError(StorageError):
    """Raised when a file reference points at a storage backend that is not supported."""


class FileReadError(StorageError):
    """Raised when a stored file cannot be read or written."""
