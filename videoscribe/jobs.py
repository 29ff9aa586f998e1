"""
Firestore job records.

A job record is created by the client before the video upload starts and
waits in ``uploaded`` status.  The pipeline claims it by moving it to
``processing`` and finishes it in ``completed`` or ``error``.
"""

import logging
import os
from typing import Optional

from google.api_core import exceptions
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from .errors import ClaimLookupError, FinalizeWriteError
from .models import Transcription

logger = logging.getLogger(__name__)

JOBS_COLLECTION = os.environ.get("JOBS_COLLECTION", "transcriptionJobs")

STATUS_UPLOADED = "uploaded"
STATUS_PROCESSING = "processing"
STATUS_COMPLETED = "completed"
STATUS_ERROR = "error"

NO_RESULTS_MESSAGE = "No transcription results returned by API."


def claim_pending_job(
    db: firestore.Client,
    video_path: str,
    owner_id: str,
    *,
    collection: str = JOBS_COLLECTION,
) -> Optional[firestore.DocumentReference]:
    """Find the ``uploaded`` job for a video and move it to ``processing``.

    The status update is conditioned on the document's update time as read,
    so of two invocations racing for the same record only one succeeds.

    Args:
        db: Firestore client.
        video_path: Object name of the uploaded video.
        owner_id: Owner id taken from the object name.
        collection: Name of the jobs collection.

    Returns:
        The reference of the claimed job, or ``None`` when there is no
        pending job or another invocation claimed it first.

    Raises:
        ClaimLookupError: If the query or the update fails.
    """
    query = (
        db.collection(collection)
        .where(filter=FieldFilter("originalVideoPath", "==", video_path))
        .where(filter=FieldFilter("userId", "==", owner_id))
        .where(filter=FieldFilter("status", "==", STATUS_UPLOADED))
        .limit(1)
    )
    try:
        snapshots = query.get()
    except exceptions.GoogleAPIError as exc:
        raise ClaimLookupError(f"Could not look up job for {video_path}: {exc}") from exc
    if not snapshots:
        logger.info('No matching job found for path %s with status "%s".', video_path, STATUS_UPLOADED)
        return None

    snapshot = snapshots[0]
    job_ref = snapshot.reference
    logger.info("Found matching job document: %s", job_ref.path)
    try:
        job_ref.update(
            {"status": STATUS_PROCESSING, "updatedAt": firestore.SERVER_TIMESTAMP},
            option=db.write_option(last_update_time=snapshot.update_time),
        )
    except exceptions.FailedPrecondition:
        # the document changed since it was read
        logger.info("Job for %s was claimed by another invocation.", video_path)
        return None
    except exceptions.GoogleAPIError as exc:
        raise ClaimLookupError(f"Could not claim job for {video_path}: {exc}") from exc
    logger.info("Job %s status updated to '%s'.", job_ref.id, STATUS_PROCESSING)
    return job_ref


def _update(job_ref: firestore.DocumentReference, fields: dict) -> None:
    fields["updatedAt"] = firestore.SERVER_TIMESTAMP
    try:
        job_ref.update(fields)
    except exceptions.GoogleAPIError as exc:
        raise FinalizeWriteError(f"Could not update job {job_ref.id}: {exc}") from exc


def mark_completed(job_ref: firestore.DocumentReference, transcription: Transcription) -> None:
    """Record a finished transcription.

    An empty transcription still completes the job; the record then carries
    a diagnostic note in ``errorMessage``.
    """
    if transcription.is_empty:
        logger.info("No transcription results found.")
        fields = {
            "status": STATUS_COMPLETED,
            "transcript": "",
            "wordTimings": [],
            "errorMessage": NO_RESULTS_MESSAGE,
        }
    else:
        fields = {
            "status": STATUS_COMPLETED,
            "transcript": transcription.transcript,
            "wordTimings": [wt.to_record() for wt in transcription.word_timings],
            "errorMessage": None,
        }
    _update(job_ref, fields)
    logger.info("Job %s updated with results.", job_ref.id)


def mark_failed(job_ref: firestore.DocumentReference, message: str) -> None:
    _update(job_ref, {"status": STATUS_ERROR, "errorMessage": message})
    logger.info("Job %s updated with error status.", job_ref.id)
