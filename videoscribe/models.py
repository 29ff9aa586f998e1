"""Transcription results shared by the speech wrapper and the job records."""

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class WordTiming:
    word: str
    start_time_sec: float
    end_time_sec: float

    def to_record(self) -> Dict[str, Any]:
        return {
            "word": self.word,
            "startTimeSec": self.start_time_sec,
            "endTimeSec": self.end_time_sec,
        }


@dataclass
class Transcription:
    """Reduced recogniser output.

    ``result_count`` is the number of result segments in the response.  A
    response without segments is a valid outcome for silent or
    unintelligible audio and is reported through :attr:`is_empty`.
    """

    transcript: str = ""
    word_timings: List[WordTiming] = field(default_factory=list)
    result_count: int = 0

    @property
    def is_empty(self) -> bool:
        return self.result_count == 0
