"""Form slot that owns one captured or uploaded artifact."""

import logging
import tempfile
from pathlib import Path

from fieldcapture.core.models import CaptureArtifact

logger = logging.getLogger(__name__)


class MediaField:
    """Holds at most one artifact plus a preview file derived from it.

    The preview is written lazily and deleted whenever the artifact is
    replaced or cleared.
    """

    def __init__(self, name: str, preview_dir: str | Path | None = None) -> None:
        self.name = name
        self._preview_dir = Path(preview_dir) if preview_dir else None
        self._artifact: CaptureArtifact | None = None
        self._preview: Path | None = None

    @property
    def artifact(self) -> CaptureArtifact | None:
        return self._artifact

    def set(self, artifact: CaptureArtifact | None) -> None:
        self.release_preview()
        self._artifact = artifact

    def clear(self) -> None:
        self.set(None)

    def preview_path(self) -> Path | None:
        """Return a file holding the artifact bytes, creating it on first use."""
        if self._artifact is None:
            return None
        if self._preview is None:
            if self._preview_dir is not None:
                self._preview_dir.mkdir(parents=True, exist_ok=True)
            suffix = Path(self._artifact.filename).suffix
            with tempfile.NamedTemporaryFile(
                dir=self._preview_dir, prefix=f"{self.name}_", suffix=suffix, delete=False
            ) as fh:
                fh.write(self._artifact.data)
            self._preview = Path(fh.name)
        return self._preview

    def release_preview(self) -> None:
        preview, self._preview = self._preview, None
        if preview is not None:
            preview.unlink(missing_ok=True)
            logger.debug("Released preview %s", preview)
