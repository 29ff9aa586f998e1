"""
Video transcription pipeline.

The package turns a video uploaded to Cloud Storage into a transcript with
word-level timings.  The Cloud Functions entrypoints in
:mod:`videoscribe.main` claim the matching Firestore job record, extract
the audio track, run Google Speech-to-Text and write the result back to the
job record.
"""
