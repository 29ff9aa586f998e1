"""Exceptions raised by the transcription pipeline."""


class PipelineError(Exception):
    """Base class for every pipeline failure."""


class ClaimLookupError(PipelineError):
    """Finding or claiming the pending job record failed."""


class TransformError(PipelineError):
    """ffmpeg could not turn the video into PCM audio."""


class StagingError(PipelineError):
    """The extracted audio could not be uploaded to Cloud Storage."""


class RecognitionError(PipelineError):
    """Speech-to-Text rejected the request or the operation failed."""


class FinalizeWriteError(PipelineError):
    """Writing the terminal status to the job record failed."""


class CleanupError(PipelineError):
    """A temporary artifact could not be removed."""
