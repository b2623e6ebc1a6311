# tests/test_cli.py  (end-to-end through main and the per-tool entry points)
import io
import sys

import pytest
from svkit.core import build_parser, cut_main, main, sort_main


@pytest.fixture
def table(tmp_path):
    p = tmp_path / "in.csv"
    p.write_text("h1,h2,h3\na,b,c\n", encoding="utf-8")
    return p


def test_cut_to_stdout(table, capsys):
    assert main(["cut", "-c", "1,3", str(table)]) == 0
    assert capsys.readouterr().out == "h1,h3\na,c\n"

def test_cut_positional_output_file(table, tmp_path, capsys):
    out = tmp_path / "out.csv"
    assert main(["cut", "-c", "3-2,2", str(table), str(out)]) == 0
    assert out.read_text(encoding="utf-8") == "h2\nb\n"
    assert main(["cut", "-c", "2", str(table), "-"]) == 0
    assert capsys.readouterr().out == "h2\nb\n"

def test_output_given_twice_is_an_error(table, tmp_path, capsys):
    out = tmp_path / "out.csv"
    assert main(["cut", "-O", str(out), str(table), str(out)]) == 1
    assert "[ERROR]" in capsys.readouterr().err

def test_cut_line_numbers_and_no_header(table, capsys):
    assert main(["cut", "-l", "-c", "1", str(table)]) == 0
    assert capsys.readouterr().out == "N,h1\n1,a\n"
    assert main(["cut", "--no-header", "-l", "-z", "-c", "1", str(table)]) == 0
    assert capsys.readouterr().out == "N,C1\n0,h1\n1,a\n"

def test_sort_numeric_key(tmp_path, capsys):
    p = tmp_path / "s.csv"
    p.write_text("name,n\nx,10\ny,9\nz,abc\n", encoding="utf-8")
    assert sort_main(["-c", "2n", str(p)]) == 0
    assert capsys.readouterr().out == "name,n\nz,abc\ny,9\nx,10\n"
    assert main(["sort", "-r", "-c", "2n", str(p)]) == 0
    assert capsys.readouterr().out == "name,n\nx,10\ny,9\nz,abc\n"

def test_grep_rule_flags(tmp_path, capsys):
    p = tmp_path / "g.csv"
    p.write_text("k,pos\na,TOP\nb,BOTTOM\n", encoding="utf-8")
    assert main(["grep", "-r2=TOP", str(p)]) == 0
    assert capsys.readouterr().out == "k,pos\na,TOP\n"
    assert main(["grep", "-v", "-r2=^TOP$", str(p)]) == 0
    assert capsys.readouterr().out == "k,pos\nb,BOTTOM\n"
    assert main(["grep", "--no-filter", "-r1=^(a)$", "-w1=[$1]", str(p)]) == 0
    assert capsys.readouterr().out == "k,pos\n[a],TOP\nb,BOTTOM\n"

def test_tool_entry_point_and_names(table, capsys):
    assert cut_main(["-c", "2", str(table)]) == 0
    assert capsys.readouterr().out == "h2\nb\n"
    assert main(["cut", "-n", str(table)]) == 0
    assert capsys.readouterr().out == " 1: h1\n 2: h2\n 3: h3\n"

def test_ignore_beginning_with_tab(tmp_path, capsys):
    p = tmp_path / "t.tsv"
    p.write_text("junk line\nh1\th2\nx\ty\n", encoding="utf-8")
    assert main(["cut", "-t", "--ignore-beginning", "1", "-c", "2", str(p)]) == 0
    assert capsys.readouterr().out == "h2\ny\n"

def test_pretty_output(table, capsys):
    assert main(["cut", "--pretty", "-c", "1,3", str(table)]) == 0
    out = capsys.readouterr().out
    assert "| h1 | h3 |" in out and "| a  | c  |" in out

@pytest.mark.parametrize("argv, message", [
    (["cut", "-c", "0"], "[ERROR]"),
    (["cut", "-c", "5"], "5: no such field in record of length 3"),
    (["sort", "-r1=x"], "only valid for grep"),
    (["grep", "-r1=("], "Bad regex"),
])
def test_errors_exit_one(table, capsys, argv, message):
    assert main(argv + [str(table)]) == 1
    assert message in capsys.readouterr().err

def test_missing_input_file(tmp_path, capsys):
    assert main(["cut", str(tmp_path / "nope.csv")]) == 1
    assert "[ERROR]" in capsys.readouterr().err

def test_help_and_usage_exit_codes(capsys):
    assert main(["cut", "--help"]) == 0
    assert "Select and reorder fields" in capsys.readouterr().out
    assert main(["--commands"]) == 0
    assert "sort" in capsys.readouterr().out
    assert main([]) == 1
    assert main(["frobnicate"]) == 1

def test_parser_lists_every_tool():
    ap = build_parser()
    ns = ap.parse_args(["sort", "-c", "1n"])
    assert ns.command == "sort" and ns.columns == "1n"

def _stdin(text):
    return io.TextIOWrapper(io.BytesIO(text.encode("utf-8")), encoding="utf-8")

@pytest.mark.parametrize("source", [[], ["-"]])
def test_reads_stdin(monkeypatch, capsys, source):
    monkeypatch.setattr(sys, "stdin", _stdin("h1,h2\na,b\n"))
    assert main(["cut", "-c", "2", *source]) == 0
    assert capsys.readouterr().out == "h2\nb\n"
    # the wrapper over stdin's buffer is detached, not closed
    assert not sys.stdin.closed

def test_stdin_error_reports_physical_line(monkeypatch, capsys):
    monkeypatch.setattr(sys, "stdin", _stdin("skip\nh\n\"open\n"))
    assert main(["cut", "--ignore-beginning", "1"]) == 1
    assert "line 3" in capsys.readouterr().err
