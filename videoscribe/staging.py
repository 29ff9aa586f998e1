"""
Naming and cleanup of the temporary artifacts of one pipeline run.

Every run works on three transient files: a local copy of the uploaded
video, the local WAV extracted from it and the same WAV staged in Cloud
Storage for the recogniser.  All three are named from a per-run prefix
built from the current time and the owner id so that concurrent runs never
collide.
"""

import logging
import os
import tempfile
import time
from pathlib import Path
from typing import NamedTuple, Optional

from .errors import CleanupError

logger = logging.getLogger(__name__)

AUDIO_STAGING_PREFIX = os.environ.get("AUDIO_STAGING_PREFIX", "extracted_audio/")
AUDIO_EXTENSION = ".wav"


class ArtifactPaths(NamedTuple):
    prefix: str
    local_video_path: str
    local_audio_path: str
    audio_storage_path: str


def build_artifact_paths(
    owner_id: str,
    file_path: str,
    *,
    tmp_dir: Optional[str] = None,
    now_ms: Optional[int] = None,
) -> ArtifactPaths:
    """Derive the temporary local paths and the staging object name.

    Args:
        owner_id: Owner of the uploaded video.
        file_path: Object name of the uploaded video in the bucket.
        tmp_dir: Directory for local files.  Defaults to the system
            temporary directory.
        now_ms: Epoch milliseconds used for the prefix.  Defaults to now.

    Returns:
        The computed :class:`ArtifactPaths`.  Nothing is created on disk.
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    if tmp_dir is None:
        tmp_dir = tempfile.gettempdir()
    prefix = f"{now_ms}_{owner_id}"
    base_name = os.path.basename(file_path)
    audio_file_name = f"{prefix}_{Path(base_name).stem}{AUDIO_EXTENSION}"
    return ArtifactPaths(
        prefix=prefix,
        local_video_path=os.path.join(tmp_dir, f"{prefix}_{base_name}"),
        local_audio_path=os.path.join(tmp_dir, audio_file_name),
        audio_storage_path=f"{AUDIO_STAGING_PREFIX}{owner_id}/{audio_file_name}",
    )


def _remove(path: str) -> bool:
    if not os.path.exists(path):
        return False
    try:
        os.remove(path)
    except OSError as exc:
        raise CleanupError(f"Could not remove {path}: {exc}") from exc
    return True


def release_local(paths: ArtifactPaths) -> None:
    """Delete the local video and audio files of a run.

    Missing files are skipped and deletion errors are logged, so the call is
    safe to repeat and never raises.
    """
    for label, path in (("video", paths.local_video_path), ("audio", paths.local_audio_path)):
        try:
            if _remove(path):
                logger.info("[Cleanup] Removed temp %s %s", label, path)
        except CleanupError as exc:
            logger.error("[Cleanup] %s", exc)


def delete_staged_audio(blob) -> None:
    """Delete the staged audio object from Cloud Storage.

    Raises:
        CleanupError: If the delete call fails.
    """
    try:
        blob.delete()
    except Exception as exc:
        raise CleanupError(f"Could not delete staged audio {blob.name}: {exc}") from exc
    logger.info("[Cleanup] Deleted staged audio %s", blob.name)
