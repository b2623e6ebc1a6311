# tests/test_sort.py  (comparator and in-memory sort engine)
import random
import functools
import pytest
from svkit.config import Config
from svkit.errors import FieldIndexError, PipelineError
from svkit.pipeline import compare_fields, compare_strings, make_comparator, sort_records
from svkit.utils.columns import FieldRange, TypeHint, parse_field_ranges

from tests.test_pipeline import ListSink

NUM = TypeHint.NUMERIC


def _sign(x):
    return (x > 0) - (x < 0)


def _sort(rows, **kw):
    if "columns" in kw and isinstance(kw["columns"], str):
        kw["columns"] = parse_field_ranges(kw["columns"])
    sink = ListSink()
    sort_records(iter(rows), sink, Config(**kw))
    assert sink.flushed
    return sink.rows

# ---------- FIELD COMPARISON ----------

def test_numeric_order_differs_from_lexicographic():
    vals = ["10", "9", "2"]
    num = sorted(vals, key=functools.cmp_to_key(lambda a, b: compare_fields(a, b, NUM)))
    lex = sorted(vals, key=functools.cmp_to_key(compare_fields))
    assert num == ["2", "9", "10"]
    assert lex == ["10", "2", "9"]

def test_numeric_one_sided_parse_failure_sorts_first():
    assert compare_fields("abc", "5", NUM) < 0
    assert compare_fields("5", "abc", NUM) > 0
    assert compare_fields("abc", "def", NUM) < 0
    assert compare_fields("2.0", "2", NUM) == 0
    assert compare_fields(" 3 ", "3", NUM) == 0
    assert compare_fields("-1.5", "1e1", NUM) < 0

def test_numeric_parse_is_ascii_decimal_only():
    # digit-group underscores and non-ASCII digits do not parse as numbers
    assert compare_fields("1_000", "5", NUM) < 0
    assert compare_fields("\u0661\u0662", "5", NUM) < 0
    assert compare_fields("\uff17", "5", NUM) < 0
    assert compare_fields("-Inf", "-1e308", NUM) < 0
    assert compare_fields(".5", "0.25", NUM) > 0
    assert compare_fields("1.", "1", NUM) == 0

def test_string_compare_prefix_and_bytes():
    assert compare_strings("ab", "abc") < 0
    assert compare_strings("b", "abc") > 0
    assert compare_strings("same", "same") == 0
    assert compare_strings("Z", "a") < 0
    assert compare_strings("z", "é") < 0

def test_string_compare_is_total_order():
    rng = random.Random(7)
    alphabet = "ab é1"
    words = ["".join(rng.choice(alphabet) for _ in range(rng.randint(0, 4))) for _ in range(40)]
    for a in words:
        assert compare_strings(a, a) == 0
        for b in words:
            assert _sign(compare_strings(a, b)) == -_sign(compare_strings(b, a))
            for c in words[:10]:
                if compare_strings(a, b) <= 0 and compare_strings(b, c) <= 0:
                    assert compare_strings(a, c) <= 0

# ---------- RECORD COMPARATOR ----------

def test_comparator_uses_keys_in_order():
    rows = [["x", "2"], ["a", "2"], ["b", "1"]]
    cmp = make_comparator(parse_field_ranges("2n,1"))
    assert sorted(rows, key=functools.cmp_to_key(cmp)) == [["b", "1"], ["a", "2"], ["x", "2"]]

def test_comparator_span_compares_left_to_right():
    cmp = make_comparator([FieldRange(0, 1)])
    assert cmp(["a", "b", "z"], ["a", "c", "a"]) < 0
    assert cmp(["a", "b", "z"], ["a", "b", "a"]) == 0

def test_comparator_out_of_range_field():
    with pytest.raises(FieldIndexError) as ei:
        make_comparator([FieldRange(3)])(["a"], ["b"])
    assert (ei.value.index, ei.value.length) == (4, 1)

# ---------- SORT ENGINE ----------

def test_sort_numeric_key_keeps_header():
    rows = [["h1", "h2"], ["x", "10"], ["x", "2"], ["x", "9"]]
    assert _sort(rows, columns="2n") == [["h1", "h2"], ["x", "2"], ["x", "9"], ["x", "10"]]

def test_sort_reverse_inverts_comparator_not_header():
    rows = [["h1", "h2"], ["x", "10"], ["x", "2"], ["x", "9"]]
    out = _sort(rows, columns="2n", reverse=True)
    assert out == [["h1", "h2"], ["x", "10"], ["x", "9"], ["x", "2"]]

def test_sort_default_key_is_first_field_string():
    rows = [["h"], ["b"], ["10"], ["a"], ["9"]]
    assert _sort(rows) == [["h"], ["10"], ["9"], ["a"], ["b"]]

def test_sort_without_header_synthesizes_one():
    out = _sort([["b", "1"], ["a", "2"]], no_header=True)
    assert out == [["C1", "C2"], ["a", "2"], ["b", "1"]]

def test_sort_line_numbers():
    rows = [["h"], ["b"], ["a"]]
    assert _sort(rows, line_numbers=True) == [["N", "h"], ["1", "a"], ["2", "b"]]
    assert _sort(rows, line_numbers=True, zero_based=True)[1] == ["0", "a"]
    # header is labelled N, not counted
    assert _sort(rows, line_numbers=True, zero_based=True)[0] == ["N", "h"]

def test_sort_ignore_end_is_static_truncation():
    rows = [["h"], ["c"], ["a"], ["b"]]
    assert _sort(rows, ignore_end=1) == [["h"], ["a"], ["c"]]
    assert _sort(rows, ignore_end=4) == []
    with pytest.raises(PipelineError):
        _sort(rows, ignore_end=5)

def test_sort_empty_input():
    assert _sort([]) == []
    assert _sort([], no_header=True) == []
