"""
Orchestration layer for the transcription pipeline.

This module drives one uploaded video through the pipeline.  It is called
from the Cloud Function entrypoint in :mod:`videoscribe.main`:

* The upload event is filtered on the **videos/** folder and a ``video/*``
  content type, and the owner id is read from the second path segment.
* The matching Firestore job is claimed (``uploaded`` -> ``processing``).
* The video is downloaded, its audio extracted and staged back in the
  bucket, and the staged audio is transcribed.
* The job is finished as ``completed`` or ``error``.

Local temporary files are removed on every exit path.  The staged audio is
only removed once the job has been completed.
"""

from __future__ import annotations

import logging
import os
from typing import Callable, Optional

from google.cloud import firestore, storage

from . import audio_processor, jobs, staging
from .errors import CleanupError, FinalizeWriteError, StagingError
from .stt_service import TARGET_SAMPLE_RATE, TranscriptionClient

logger = logging.getLogger(__name__)

VIDEO_PREFIX = os.environ.get("VIDEO_PREFIX", "videos/")
VIDEO_CONTENT_TYPE_PREFIX = "video/"
AUDIO_CONTENT_TYPE = "audio/wav"

# Stages of a claimed job, logged when a run fails.
STAGE_CLAIMED = "claimed"
STAGE_EXTRACTING = "extracting"
STAGE_STAGING = "staging"
STAGE_RECOGNIZING = "recognizing"
STAGE_FINALIZING = "finalizing"


def _extract_owner_id(file_name: str) -> Optional[str]:
    """Return the owner id from ``videos/<ownerId>/...`` or ``None``."""
    parts = file_name.split("/")
    if len(parts) < 2 or not parts[1]:
        return None
    return parts[1]


def _error_message(exc: Exception) -> str:
    return str(exc) or type(exc).__name__


class TranscriptionJobRunner:
    """Runs the claimed-to-terminal lifecycle of one transcription job.

    Collaborators are injected so that tests can substitute fakes:

    Args:
        storage_client: Cloud Storage client.
        db: Firestore client holding the job records.
        transcription_client: Speech-to-Text wrapper.
        extract_audio: Callable turning a local video into a local WAV.
        tmp_dir: Directory for local temporary files.
    """

    def __init__(
        self,
        storage_client: storage.Client,
        db: firestore.Client,
        transcription_client: TranscriptionClient,
        *,
        extract_audio: Callable[[str, str], None] = audio_processor.extract_audio,
        tmp_dir: Optional[str] = None,
    ) -> None:
        self._storage = storage_client
        self._db = db
        self._transcription = transcription_client
        self._extract_audio = extract_audio
        self._tmp_dir = tmp_dir
        self.stage: Optional[str] = None

    def run(self, bucket_name: str, file_path: str, owner_id: str) -> Optional[str]:
        """Process one uploaded video.

        Returns:
            The terminal status written to the job record, or ``None`` if no
            pending job was claimed.

        Raises:
            ClaimLookupError: If the job lookup itself failed.  Nothing has
                been downloaded or written at that point.
        """
        job_ref = jobs.claim_pending_job(self._db, file_path, owner_id)
        if job_ref is None:
            return None
        self.stage = STAGE_CLAIMED

        paths = staging.build_artifact_paths(owner_id, file_path, tmp_dir=self._tmp_dir)
        bucket = self._storage.bucket(bucket_name)
        try:
            self._process(bucket, file_path, paths, job_ref)
            return jobs.STATUS_COMPLETED
        except Exception as exc:
            message = _error_message(exc)
            logger.exception("ERROR during processing (stage %s): %s", self.stage, message)
            try:
                jobs.mark_failed(job_ref, message)
            except FinalizeWriteError:
                logger.exception("ERROR updating job %s with error status", job_ref.id)
            return jobs.STATUS_ERROR
        finally:
            staging.release_local(paths)

    def _process(self, bucket: storage.Bucket, file_path: str, paths: staging.ArtifactPaths, job_ref) -> None:
        self.stage = STAGE_EXTRACTING
        logger.info("Downloading video to: %s", paths.local_video_path)
        bucket.blob(file_path).download_to_filename(paths.local_video_path)
        logger.info("Video downloaded successfully.")
        self._extract_audio(paths.local_video_path, paths.local_audio_path)

        self.stage = STAGE_STAGING
        audio_blob = self._stage_audio(bucket, paths)
        gcs_uri = f"gs://{bucket.name}/{paths.audio_storage_path}"
        logger.info("Audio uploaded successfully: %s", gcs_uri)

        self.stage = STAGE_RECOGNIZING
        transcription = self._transcription.transcribe(gcs_uri, TARGET_SAMPLE_RATE)

        self.stage = STAGE_FINALIZING
        jobs.mark_completed(job_ref, transcription)
        try:
            staging.delete_staged_audio(audio_blob)
        except CleanupError as exc:
            logger.error("[Cleanup] %s", exc)

    @staticmethod
    def _stage_audio(bucket: storage.Bucket, paths: staging.ArtifactPaths) -> storage.Blob:
        logger.info("Uploading extracted audio to: %s", paths.audio_storage_path)
        blob = bucket.blob(paths.audio_storage_path)
        try:
            blob.upload_from_filename(paths.local_audio_path, content_type=AUDIO_CONTENT_TYPE)
        except Exception as exc:
            raise StagingError(str(exc)) from exc
        return blob


def process_video_upload(bucket_name: str, file_name: str, content_type: Optional[str]) -> Optional[str]:
    """Process an uploaded video file.

    This function is intended to be called when a file is added to the
    **videos/** folder in Cloud Storage.  Files outside that folder, files
    whose content type is not a video and paths without an owner segment
    are ignored without touching Firestore.

    Args:
        bucket_name: Name of the Cloud Storage bucket.
        file_name: Full path of the uploaded file relative to the bucket.
        content_type: MIME type reported by Cloud Storage.

    Returns:
        The terminal job status, or ``None`` if nothing was processed.
    """
    if not file_name.startswith(VIDEO_PREFIX) or not (content_type or "").startswith(VIDEO_CONTENT_TYPE_PREFIX):
        logger.info(
            "File %s is not a video in the '%s' folder or content type (%s) is not video. Ignoring.",
            file_name,
            VIDEO_PREFIX,
            content_type,
        )
        return None
    owner_id = _extract_owner_id(file_name)
    if not owner_id:
        logger.error("Could not extract userId from path %s", file_name)
        return None
    logger.info("Processing video file %s for user %s", file_name, owner_id)

    runner = TranscriptionJobRunner(
        storage.Client(),
        firestore.Client(),
        TranscriptionClient(),
    )
    status = runner.run(bucket_name, file_name, owner_id)
    logger.info("Function execution finished for %s.", file_name)
    return status
