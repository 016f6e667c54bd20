"""SRT generation from word-level speech-to-text output."""

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

from shared.enums import TranscriptElementType
from shared.models import TranscriptWord
from shared.utils import config

SKIPPED_ELEMENT_TYPES = {TranscriptElementType.SPACING.value, TranscriptElementType.AUDIO_EVENT.value}
SENTENCE_TERMINATORS = (".", "?", "!")
BLOCK_SEPARATOR = "\n\n"

_BLANK_LINE_RE = re.compile(r"(?:\r?\n){2,}")


def format_srt_timestamp(seconds: float) -> str:
    """Format seconds as an SRT timestamp (HH:MM:SS,mmm)."""
    total_ms = int(
        (Decimal(str(max(seconds, 0.0))) * 1000).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    )
    hours, remainder = divmod(total_ms, 3_600_000)
    minutes, remainder = divmod(remainder, 60_000)
    secs, milliseconds = divmod(remainder, 1000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d},{milliseconds:03d}"


@dataclass
class _Cue:
    words: list[str] = field(default_factory=list)
    start: float = 0.0
    end: float = 0.0

    def add(self, text: str, start: float, end: float) -> None:
        if not self.words:
            self.start = start
        self.words.append(text)
        self.end = end

    def attach(self, text: str, end: float) -> None:
        self.words[-1] = f"{self.words[-1]}{text}"
        self.end = max(self.end, end)


class SrtGenerator:
    """Build, split and count SRT subtitle blocks."""

    def __init__(self, words_per_subtitle: int | None = None):
        self.words_per_subtitle = words_per_subtitle or int(config.get("subtitle_words_per_subtitle", 8))

    def generate_srt(self, words: Iterable[TranscriptWord], words_per_subtitle: int | None = None) -> str:
        """Group transcript words into numbered SRT blocks.

        Blocks hold at most ``words_per_subtitle`` words and close early right after a
        word ending in ``.``, ``?`` or ``!``. Spacing, audio events and blank elements
        are dropped. Stand-alone punctuation elements are glued onto the word before them.
        """
        limit = max(1, words_per_subtitle or self.words_per_subtitle)
        cues = self._group_words(words, limit)
        return "".join(self._render_cue(index, cue) for index, cue in enumerate(cues, start=1))

    def split_srt_into_blocks(self, srt_content: str) -> list[str]:
        """Split SRT text on blank lines; tolerant of CRLF line endings."""
        if not srt_content or not srt_content.strip():
            return []
        return [block.strip() for block in _BLANK_LINE_RE.split(srt_content) if block.strip()]

    def count_subtitle_blocks(self, srt_content: str) -> int:
        return len(self.split_srt_into_blocks(srt_content))

    @staticmethod
    def _group_words(words: Iterable[TranscriptWord], limit: int) -> list[_Cue]:
        cues: list[_Cue] = []
        current = _Cue()

        for word in words:
            if word.type in SKIPPED_ELEMENT_TYPES:
                continue
            text = word.text.strip()
            if not text:
                continue

            if word.type == TranscriptElementType.PUNCTUATION.value:
                target = current if current.words else (cues[-1] if cues else None)
                if target is not None:
                    target.attach(text, word.end)
                    if target is current and text.endswith(SENTENCE_TERMINATORS):
                        cues.append(current)
                        current = _Cue()
                    continue

            current.add(text, word.start, word.end)
            if len(current.words) >= limit or text.endswith(SENTENCE_TERMINATORS):
                cues.append(current)
                current = _Cue()

        if current.words:
            cues.append(current)
        return cues

    @staticmethod
    def _render_cue(index: int, cue: _Cue) -> str:
        timing = f"{format_srt_timestamp(cue.start)} --> {format_srt_timestamp(cue.end)}"
        return f"{index}\n{timing}\n{' '.join(cue.words)}\n\n"
