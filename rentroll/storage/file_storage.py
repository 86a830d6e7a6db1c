import uuid
from pathlib import Path

from rentroll.logging.logger import Log
from rentroll.storage.exceptions import FileReadError, UnsupportedStorageError

LOCAL_SCHEME = "local://"


class FileStorage:
    """Stores uploaded PDFs under files_root and reads them back.

    File references handed out look like "local://<uuid>.pdf" and are
    opaque to callers.
    """

    FILES_ROOT = Path("/app/files")

    def __init__(self, files_root: Path | None = None) -> None:
        self._files_root = files_root if files_root is not None else self.FILES_ROOT

    def save(self, content: bytes) -> str:
        """Write content to a fresh file and return its reference.

        Raises:
            FileReadError: if the file cannot be written.
        """
        name = f"{uuid.uuid4()}.pdf"
        path = self._files_root / name
        try:
            self._files_root.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
        except OSError as exc:
            raise FileReadError(f"Cannot write {path}: {exc}") from exc
        Log.debug(f"Stored {len(content)} bytes at {path}")
        return f"{LOCAL_SCHEME}{name}"

    def load(self, file_path: str) -> bytes:
        """Read the bytes behind a file reference.

        Raises:
            FileNotFoundError: if no file exists at the resolved path.
            UnsupportedStorageError: if the reference is not a local one.
            FileReadError: if the path escapes files_root or cannot be read.
        """
        path = self.resolve(file_path)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")
        try:
            return path.read_bytes()
        except OSError as exc:
            raise FileReadError(f"Cannot read {path}: {exc}") from exc

    def delete(self, file_path: str) -> None:
        """Remove a stored file; a missing file is not an error."""
        path = self.resolve(file_path)
        path.unlink(missing_ok=True)

    def resolve(self, file_path: str) -> Path:
        if "://" in file_path and not file_path.startswith(LOCAL_SCHEME):
            raise UnsupportedStorageError(f"Storage for '{file_path}' is not supported")
        relative = file_path.removeprefix(LOCAL_SCHEME)
        root = self._files_root.resolve()
        path = (root / relative).resolve()
        if not path.is_relative_to(root):
            raise FileReadError(f"File reference '{file_path}' is outside the files root")
        return path
