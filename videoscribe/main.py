"""
Cloud Function entrypoints for the video transcription pipeline.

This module exposes two functions:

* ``gcs_event`` – a background function triggered by Cloud Storage
  ``finalize`` events.  It hands the uploaded object to
  :func:`videoscribe.tasks.process_video_upload`.
* ``http_trigger`` – an HTTP function you can invoke manually for testing
  or reprocessing.

Environment variables:

* ``VIDEO_PREFIX`` – Folder watched for uploads (default ``videos/``).
* ``JOBS_COLLECTION`` – Firestore collection of job records (default
  ``transcriptionJobs``).
* ``AUDIO_STAGING_PREFIX`` – Folder for staged audio (default
  ``extracted_audio/``).
* ``FFMPEG_PATH`` – ffmpeg binary used for audio extraction.
* ``RECOGNITION_TIMEOUT`` – Optional deadline in seconds for the
  recognition operation.

Deployment typically uses the ``gcs_event`` function as the entrypoint.
"""

import logging
from typing import Any, Dict

from . import tasks
from .errors import ClaimLookupError

logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)


def gcs_event(event: Dict[str, Any], context: Any) -> None:
    """Background function triggered by Cloud Storage.

    The event contains the ``bucket``, ``name`` and ``contentType`` of the
    uploaded file.  Failures are recorded on the job record, so this
    function never raises for them.
    """
    bucket = event.get("bucket")
    name = event.get("name")
    content_type = event.get("contentType")
    if not bucket or not name:
        logger.warning("Received event with missing bucket or name: %s", event)
        return
    logger.info("New file detected: gs://%s/%s (content type %s)", bucket, name, content_type)
    try:
        tasks.process_video_upload(bucket, name, content_type)
    except ClaimLookupError:
        logger.exception("Error finding/updating initial job status for %s", name)


def http_trigger(request):
    """HTTP entrypoint for manual invocation.

    You can call this function via HTTP with a JSON body containing
    ``bucket``, ``name`` and ``contentType`` fields to simulate a Cloud
    Storage event.
    """
    try:
        data = request.get_json(silent=True) or {}
        bucket = data.get("bucket")
        name = data.get("name")
        if not bucket or not name:
            return "Missing 'bucket' or 'name' in request", 400
        gcs_event({"bucket": bucket, "name": name, "contentType": data.get("contentType")}, context=None)
        return "OK", 200
    except Exception as exc:  # pragma: no cover
        logger.exception("Error in HTTP trigger: %s", exc)
        return f"Error: {exc}", 500
