from __future__ import annotations

from novelvn.ui.textwrap import revealed_lines, wrap_spans, wrap_text_generic


def fake_measure_factory(char_widths: dict[str, int], default: int = 10):
    def measure(s: str) -> int:
        w = 0
        for ch in s:
            w += char_widths.get(ch, default)
        return w
    return measure


def test_wrap_cjk_char_based():
    # 12px per char, 36px wide -> 3 chars per line
    measure = fake_measure_factory({}, default=12)
    lines = wrap_text_generic("你好世界再见", measure, 36)
    assert lines == ["你好世", "界再见"]


def test_wrap_word_based():
    # every word is wider than the line, so each stands alone
    measure = fake_measure_factory({" ": 5}, default=5)
    lines = wrap_text_generic("hello world test", measure, 15)
    assert lines == ["hello", "world", "test"]


def test_wrap_mixed_newlines():
    measure = fake_measure_factory({}, default=10)
    lines = wrap_text_generic("第一行\n\nthird line", measure, 100)
    assert lines == ["第一行", "", "third line"]


def test_spans_are_slices_of_the_text():
    measure = fake_measure_factory({}, default=5)
    text = "the quick brown fox"
    spans = wrap_spans(text, measure, 50)
    assert [text[s:e] for s, e in spans] == ["the quick", "brown fox"]
    assert spans == [(0, 9), (10, 19)]


def test_overlong_word_keeps_own_line():
    measure = fake_measure_factory({}, default=10)
    assert wrap_text_generic("abcdefg hi", measure, 30) == ["abcdefg", "hi"]


def test_revealed_lines_follow_the_final_layout():
    measure = fake_measure_factory({}, default=5)
    text = "hello world"
    spans = wrap_spans(text, measure, 30)
    assert revealed_lines(text, spans, 0) == []
    assert revealed_lines(text, spans, 3) == ["hel"]
    # the break space is not drawn; the second line starts once its first char shows
    assert revealed_lines(text, spans, 6) == ["hello"]
    assert revealed_lines(text, spans, 7) == ["hello", "w"]
    assert revealed_lines(text, spans, len(text)) == ["hello", "world"]


def test_revealed_blank_line():
    measure = fake_measure_factory({}, default=5)
    text = "a\n\nb"
    spans = wrap_spans(text, measure, 100)
    assert revealed_lines(text, spans, 2) == ["a", ""]
    assert revealed_lines(text, spans, 4) == ["a", "", "b"]
