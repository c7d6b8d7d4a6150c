"""
Output writer for Badge Overlay.

Persists encoded badge images under a unique name. Files are written to a
hidden temporary file in the output directory and published with an atomic
rename, so a reader never sees a partial artifact.
"""

import os
import tempfile
import uuid
from pathlib import Path
from typing import Protocol, Union

from .constants import (
    logger,
    ARTIFACT_PREFIX,
    ARTIFACT_EXTENSION,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_PUBLIC_URL_PREFIX,
)
from .errors import PersistError
from .models import StoredArtifact


class StorageBackend(Protocol):
    """Anything that can durably publish encoded badge bytes."""

    def write(self, data: bytes) -> StoredArtifact:
        ...


def artifact_filename(identifier: str) -> str:
    return f"{ARTIFACT_PREFIX}{identifier}{ARTIFACT_EXTENSION}"


class OutputWriter:
    """Local-directory storage backend with atomic publish."""

    def __init__(
        self,
        output_dir: Union[str, Path] = DEFAULT_OUTPUT_DIR,
        public_url_prefix: str = DEFAULT_PUBLIC_URL_PREFIX,
    ):
        self.output_dir = Path(output_dir)
        self.public_url_prefix = public_url_prefix.rstrip('/')

    def ensure(self) -> Path:
        """Create the output directory if needed. Safe to call repeatedly."""
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PersistError(f"Cannot create output directory {self.output_dir}: {e}") from e
        return self.output_dir

    def write(self, data: bytes) -> StoredArtifact:
        """
        Persist data as badge-<uuid>.png and return where it was published.

        Raises:
            PersistError: the directory is missing or the write failed;
                nothing is left at the final path in that case
        """
        identifier = str(uuid.uuid4())
        filename = artifact_filename(identifier)
        final_path = self.output_dir / filename

        tmp_path = None
        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{ARTIFACT_PREFIX}",
                suffix='.tmp',
                dir=self.output_dir,
            )
            tmp_path = Path(tmp_name)
            with os.fdopen(fd, 'wb') as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, final_path)
            tmp_path = None
        except OSError as e:
            raise PersistError(f"Failed to write {final_path}: {e}") from e
        finally:
            if tmp_path is not None:
                try:
                    tmp_path.unlink()
                except FileNotFoundError:
                    pass
                except OSError as e:
                    logger.warning(f"TEMP_CLEANUP_FAILED path={tmp_path} error={e}")

        logger.info(f"BADGE_WRITTEN id={identifier} path={final_path} bytes={len(data)}")
        return StoredArtifact(
            identifier=identifier,
            locator=str(final_path),
            filename=filename,
            url=f"{self.public_url_prefix}/{filename}",
        )
