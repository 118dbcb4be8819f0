import pytest

from arcstory.script.lines import (
    ASSIGNMENT,
    BLANK,
    CALL,
    ELSE,
    ELSEIF,
    ENDIF,
    IF,
    SHOW,
    TEXT,
    ShowArgument,
    classify_line,
    scan_script,
    split_arguments,
)


def test_control_keywords() -> None:
    assert classify_line("if x > 1").kind == IF
    assert classify_line("if x > 1").expression == "x > 1"
    assert classify_line("  elseif visits(a)").kind == ELSEIF
    assert classify_line("else").kind == ELSE
    assert classify_line("endif").kind == ENDIF


def test_keyword_prefixes_inside_words_are_text() -> None:
    assert classify_line("ifrit appears").kind == TEXT
    assert classify_line("elsewhere, a bell rings").kind == TEXT
    assert classify_line("If you listen closely").kind == TEXT


@pytest.mark.parametrize(
    ("line", "target", "operator", "expression"),
    [
        ("x = 3", "x", "=", "3"),
        ("gold += 5", "gold", "+=", "5"),
        ("gold -= cost * 2", "gold", "-=", "cost * 2"),
        ("x *= 2", "x", "*=", "2"),
        ("x /= 0", "x", "/=", "0"),
        ("ok = y == 2", "ok", "=", "y == 2"),
        ('label = "a=b"', "label", "=", '"a=b"'),
    ],
)
def test_assignments(line: str, target: str, operator: str, expression: str) -> None:
    scanned = classify_line(line)
    assert scanned.kind == ASSIGNMENT
    assert (scanned.target, scanned.operator, scanned.expression) == (target, operator, expression)


@pytest.mark.parametrize(
    "line",
    [
        "x == 2",
        "a <= b",
        "a != b",
        "<p>a = b</p>",
        "my var = 3",
        "x =",
        "= 3",
        "a = b = c",
    ],
)
def test_non_assignments_are_text(line: str) -> None:
    assert classify_line(line).kind == TEXT


def test_blank_and_comment_lines() -> None:
    assert classify_line("").kind == BLANK
    assert classify_line("   ").kind == BLANK
    assert classify_line("// a note for writers").kind == BLANK


def test_show_arguments_are_split_respecting_quotes_and_calls() -> None:
    line = classify_line('show("a", max(1, 2), "b,c", \'say \\\'hi\\\'\')')
    assert line.kind == SHOW
    assert line.arguments == (
        ShowArgument(literal="a"),
        ShowArgument(expression="max(1, 2)"),
        ShowArgument(literal="b,c"),
        ShowArgument(literal="say 'hi'"),
    )


def test_show_followed_by_text_is_not_a_call() -> None:
    assert classify_line("show(1) and more").kind == TEXT


def test_reset_statements_are_calls() -> None:
    assert classify_line("reset(gold)").kind == CALL
    assert classify_line("resetAll()").kind == CALL
    assert classify_line("resetVisits()").kind == CALL
    assert classify_line("roll(6)").kind == TEXT


def test_split_arguments() -> None:
    assert split_arguments("") == []
    assert split_arguments("a, f(b, c), 'x,y'") == ["a", "f(b, c)", "'x,y'"]
    assert split_arguments('"\\")", 1') == ['"\\")"', "1"]


def test_scan_script_numbers_lines() -> None:
    lines = scan_script("if a\nText\nendif")
    assert [(line.kind, line.number) for line in lines] == [(IF, 1), (TEXT, 2), (ENDIF, 3)]
