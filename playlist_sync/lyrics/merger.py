"""
Bilingual LRC merging

Combines a primary LRC text with its translation into one timed stream. Each
translated line is placed directly after the primary line it belongs to and
re-timed to the *next* primary line, so players keep the original line
highlighted while the translation is shown underneath it.

Timestamp grammar:
    [MM:SS.ff]text  or  [MM:SS:ff]text

Timestamps are matched as strings: "00:01.5" and "00:01.50" are different
timestamps even though they denote the same instant. Matching compares the
MM:SS prefix and the fraction, not the separator.
"""

import re
from dataclasses import dataclass
from typing import List, Optional


LINE_PATTERN = re.compile(r'^\[(\d+:\d+)([.:])(\d+)\](.*)$')

# Timestamp given to a translation of the final line; sorts after everything
FAR_FUTURE_TIMESTAMP = '99:99:99'
_FAR_FUTURE_PREFIX, _FAR_FUTURE_FRACTION = FAR_FUTURE_TIMESTAMP.rsplit(':', 1)

FRACTION_DIGITS = 2


@dataclass(frozen=True)
class LyricLine:
    """
    One timed lyric line

    Attributes:
        prefix: Literal "MM:SS" part of the timestamp
        separator: "." or ":" between seconds and fraction
        fraction: Literal fractional-second digits
        text: Line text (may be empty)
    """
    prefix: str
    separator: str
    fraction: str
    text: str

    @property
    def timestamp(self) -> str:
        return f"{self.prefix}{self.separator}{self.fraction}"

    def same_time(self, other: 'LyricLine') -> bool:
        return self.prefix == other.prefix and self.fraction == other.fraction

    def normalized(self) -> 'LyricLine':
        """Copy with the fraction padded or truncated to two digits"""
        fraction = self.fraction.ljust(FRACTION_DIGITS, '0')[:FRACTION_DIGITS]
        return LyricLine(self.prefix, self.separator, fraction, self.text)

    def render(self) -> str:
        return f"[{self.timestamp}]{self.text}"


FAR_FUTURE_LINE = LyricLine(_FAR_FUTURE_PREFIX, ':', _FAR_FUTURE_FRACTION, '')


def parse_lyric_line(line: str) -> Optional[LyricLine]:
    """
    Parse one LRC line

    Returns:
        LyricLine, or None if the line does not match the timestamp grammar
        (ID tags such as "[ar:...]", blank lines, plain text)
    """
    match = LINE_PATTERN.match(line.rstrip('\r'))
    if not match:
        return None
    prefix, separator, fraction, text = match.groups()
    return LyricLine(prefix, separator, fraction, text)


def split_lines(text: Optional[str]) -> List[str]:
    if not text:
        return []
    return text.splitlines()


def merge_lyrics(primary_text: str, translated_text: Optional[str] = None) -> List[str]:
    """
    Merge primary and translated LRC text into one list of rendered lines

    Steps:
        1. Parse every line of both texts.
        2. For each translated line, scan the primary lines from last to
           first for the first one with the same timestamp.
        3. Attach the translation right after that line, in parentheses,
           re-timed to the next primary line (FAR_FUTURE_TIMESTAMP after the
           last line, its own timestamp if the next line has none). A later
           translation for the same line goes ahead of earlier ones.
        4. Drop every line without a valid timestamp.
        5. Pad or truncate every fraction to two digits.

    Args:
        primary_text: Original LRC text
        translated_text: Translated LRC text, None or empty to skip merging

    Returns:
        Rendered lines in output order
    """
    primary = [parse_lyric_line(line) for line in split_lines(primary_text)]
    attachments: List[List[LyricLine]] = [[] for _ in primary]

    for raw in split_lines(translated_text):
        translation = parse_lyric_line(raw)
        if translation is None:
            continue

        for index in range(len(primary) - 1, -1, -1):
            line = primary[index]
            if line is None or not line.same_time(translation):
                continue

            if index == len(primary) - 1:
                timing = FAR_FUTURE_LINE
            else:
                timing = primary[index + 1] or translation

            attached = LyricLine(timing.prefix, timing.separator, timing.fraction, f"({translation.text})")
            attachments[index].insert(0, attached)
            break

    merged = []
    for line, extra in zip(primary, attachments):
        if line is not None:
            merged.append(line)
        merged.extend(extra)

    return [line.normalized().render() for line in merged]
