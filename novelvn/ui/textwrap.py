from __future__ import annotations

import re
from typing import Callable, List, Tuple

Span = Tuple[int, int]

_WORD = re.compile(r"\S+")
_CJK_RANGES = (
    ("\u3040", "\u30ff"),  # kana
    ("\u3400", "\u4dbf"),
    ("\u4e00", "\u9fff"),
    ("\uac00", "\ud7af"),  # hangul
    ("\uff00", "\uffef"),  # full width forms
)


def _has_cjk(s: str) -> bool:
    return any(lo <= ch <= hi for ch in s for lo, hi in _CJK_RANGES)


def _char_spans(text: str, start: int, end: int, measure: Callable[[str], int], max_width: int) -> List[Span]:
    spans: List[Span] = []
    cur = start
    for i in range(start, end):
        if i > cur and measure(text[cur:i + 1]) > max_width:
            spans.append((cur, i))
            cur = i
    if cur < end:
        spans.append((cur, end))
    return spans


def _word_spans(text: str, start: int, end: int, measure: Callable[[str], int], max_width: int) -> List[Span]:
    spans: List[Span] = []
    line: Span | None = None
    for m in _WORD.finditer(text, start, end):
        if line is None:
            line = (m.start(), m.end())
        elif measure(text[line[0]:m.end()]) <= max_width:
            line = (line[0], m.end())
        else:
            spans.append(line)
            line = (m.start(), m.end())
    if line is not None:
        spans.append(line)
    return spans


def wrap_spans(text: str, measure: Callable[[str], int], max_width: int) -> List[Span]:
    """Wrap text and return each line as a ``(start, end)`` slice of ``text``.

    Lines are exact slices, so a reveal count over the original text maps
    straight onto the wrapped layout and lines never reflow while typing.
    CJK paragraphs wrap by character, others by word; a word wider than the
    line keeps a line of its own. Explicit newlines are preserved, including
    blank lines.
    """
    spans: List[Span] = []
    pos = 0
    for para in text.split("\n"):
        end = pos + len(para)
        if not para.strip():
            spans.append((pos, pos))
        elif _has_cjk(para):
            spans.extend(_char_spans(text, pos, end, measure, max_width))
        else:
            spans.extend(_word_spans(text, pos, end, measure, max_width))
        pos = end + 1
    return spans


def wrap_text_generic(text: str, measure: Callable[[str], int], max_width: int) -> List[str]:
    return [text[s:e] for s, e in wrap_spans(text, measure, max_width)]


def revealed_lines(text: str, spans: List[Span], revealed: int) -> List[str]:
    """The visible part of each wrapped line after ``revealed`` characters."""
    out: List[str] = []
    for s, e in spans:
        if revealed < s or (revealed == s and e > s):
            break
        out.append(text[s:min(e, revealed)])
    return out
