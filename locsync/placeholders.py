#!/usr/bin/env python3
"""
Placeholder protection around translation provider calls.

Variable references such as ``{userName}`` are swapped for positional
markers (``%1``, ``%2``...) before text goes to a provider, and put back
afterwards. Markers are matched by number, so providers may reorder them.
All markers of one text share a zero-padded width (``%01``...``%12`` once
there are ten or more), so a marker never runs into a digit that follows it.
"""

import re
from dataclasses import dataclass

from .logger import get_logger

logger = get_logger(__name__)


def marker_pattern(count: int) -> re.Pattern:
    """Marker regex for a text holding count spans; %1$s (printf positional) is not ours."""
    width = len(str(count))
    return re.compile(rf'%(\d{{{width}}})(?!\d*\$)')


@dataclass
class PlaceholderProtector:
    """
    Extracts and restores delimiter-wrapped variable tokens.

    Attributes:
        start: Opening delimiter (default "{")
        end: Closing delimiter (default "}")
    """
    start: str = '{'
    end: str = '}'

    def __post_init__(self):
        if not self.start or not self.end:
            raise ValueError("Placeholder delimiters must be non-empty")

    def find_spans(self, text: str) -> list[str]:
        """
        Scan left to right for delimiter-bounded spans.

        When the delimiters differ, nesting is balanced so an ICU block like
        ``{count, plural, one {# item} other {# items}}`` is a single span.
        An unterminated opening delimiter is left as plain text.
        """
        spans = []
        nested = self.start != self.end
        i = 0
        while i < len(text):
            begin = text.find(self.start, i)
            if begin < 0:
                break

            depth = 1
            j = begin + len(self.start)
            close = -1
            while j < len(text):
                if nested and text.startswith(self.start, j):
                    depth += 1
                    j += len(self.start)
                elif text.startswith(self.end, j):
                    depth -= 1
                    j += len(self.end)
                    if depth == 0:
                        close = j
                        break
                else:
                    j += 1

            if close < 0:
                break
            spans.append(text[begin:close])
            i = close
        return spans

    def protect(self, text: str) -> tuple[str, list[str]]:
        """
        Replace placeholders with positional markers.

        Args:
            text: Source text

        Returns:
            Tuple of (masked text, spans in order of appearance)
        """
        spans = self.find_spans(text)
        if not spans:
            return text, []

        width = len(str(len(spans)))
        masked = []
        position = 0
        for number, span in enumerate(spans, 1):
            index = text.index(span, position)
            masked.append(text[position:index])
            masked.append(f'%{number:0{width}d}')
            position = index + len(span)
        masked.append(text[position:])
        return ''.join(masked), spans

    def restore(self, text: str, spans: list[str]) -> str:
        """
        Put recorded spans back in place of their markers.

        Markers are resolved by number, not position. Missing, duplicated or
        unknown markers are logged and left alone.
        """
        if not spans:
            return text

        seen: list[int] = []

        def replace(match: re.Match) -> str:
            number = int(match.group(1))
            if 1 <= number <= len(spans):
                seen.append(number)
                return spans[number - 1]
            return match.group(0)

        restored = marker_pattern(len(spans)).sub(replace, text)

        missing = [n for n in range(1, len(spans) + 1) if n not in seen]
        duplicated = sorted({n for n in seen if seen.count(n) > 1})
        if missing:
            logger.warning(
                f"Provider dropped placeholder(s) {[spans[n - 1] for n in missing]} "
                f"in translation: {text!r}"
            )
        if duplicated:
            logger.warning(
                f"Provider duplicated placeholder marker(s) {duplicated} "
                f"in translation: {text!r}"
            )
        return restored
