"""Tokenizer for Arcscript expressions."""
from __future__ import annotations

import html
from dataclasses import dataclass
from typing import List

from arcstory.script.errors import ParseError

NUMBER = "NUMBER"
STRING = "STRING"
LITERAL = "LITERAL"
NAME = "NAME"
OP = "OP"
LPAREN = "LPAREN"
RPAREN = "RPAREN"
COMMA = "COMMA"
EOF = "EOF"

KEYWORD_ALIASES = {
    "and": "&&",
    "or": "||",
    "not": "!",
}
LITERAL_KEYWORDS = {"true": True, "false": False, "null": None}

# Longest operators first so "<=" wins over "<".
_OPERATORS = ("==", "!=", "<=", ">=", "&&", "||", "+", "-", "*", "/", "%", "<", ">", "!")
_ESCAPES = {"n": "\n", "t": "\t", "\\": "\\", '"': '"', "'": "'"}


@dataclass(frozen=True, slots=True)
class Token:
    kind: str
    value: object
    position: int


def decode_entities(text: str) -> str:
    """Decode HTML entities and normalize non-breaking spaces."""
    return html.unescape(text).replace("\xa0", " ")


def tokenize(source: str) -> List[Token]:
    """Split an expression into tokens.

    Entities are decoded first, and the textual operators ``is`` and
    ``is not`` are emitted as ``==`` and ``!=``.
    """
    text = decode_entities(source)
    tokens: List[Token] = []
    index = 0
    length = len(text)
    while index < length:
        char = text[index]
        if char.isspace():
            index += 1
            continue
        if char.isdigit() or (char == "." and index + 1 < length and text[index + 1].isdigit()):
            index = _read_number(text, index, tokens)
            continue
        if char in ("'", '"'):
            index = _read_string(text, index, tokens)
            continue
        if char.isalpha() or char == "_":
            index = _read_word(text, index, tokens)
            continue
        if char == "(":
            tokens.append(Token(LPAREN, char, index))
            index += 1
            continue
        if char == ")":
            tokens.append(Token(RPAREN, char, index))
            index += 1
            continue
        if char == ",":
            tokens.append(Token(COMMA, char, index))
            index += 1
            continue
        for operator in _OPERATORS:
            if text.startswith(operator, index):
                tokens.append(Token(OP, operator, index))
                index += len(operator)
                break
        else:
            raise ParseError(f"Unexpected character {char!r} at position {index}.", position=index)
    tokens.append(Token(EOF, None, length))
    return tokens


def _read_number(text: str, start: int, tokens: List[Token]) -> int:
    index = start
    seen_dot = False
    while index < len(text) and (text[index].isdigit() or (text[index] == "." and not seen_dot)):
        if text[index] == ".":
            if index + 1 >= len(text) or not text[index + 1].isdigit():
                break
            seen_dot = True
        index += 1
    literal = text[start:index]
    try:
        value: int | float = float(literal) if seen_dot else int(literal)
    except ValueError as exc:
        raise ParseError(f"Number literal at position {start} is too long.", position=start) from exc
    tokens.append(Token(NUMBER, value, start))
    return index


def _read_string(text: str, start: int, tokens: List[Token]) -> int:
    quote = text[start]
    index = start + 1
    chars: List[str] = []
    while index < len(text):
        char = text[index]
        if char == "\\" and index + 1 < len(text):
            chars.append(_ESCAPES.get(text[index + 1], text[index + 1]))
            index += 2
            continue
        if char == quote:
            tokens.append(Token(STRING, "".join(chars), start))
            return index + 1
        chars.append(char)
        index += 1
    raise ParseError(f"Unterminated string starting at position {start}.", position=start)


def _read_word(text: str, start: int, tokens: List[Token]) -> int:
    index = start
    while index < len(text) and (text[index].isalnum() or text[index] == "_"):
        index += 1
    word = text[start:index]
    if word == "is":
        lookahead = index
        while lookahead < len(text) and text[lookahead].isspace():
            lookahead += 1
        end = lookahead + 3
        if text[lookahead:end] == "not" and (end >= len(text) or not (text[end].isalnum() or text[end] == "_")):
            tokens.append(Token(OP, "!=", start))
            return end
        tokens.append(Token(OP, "==", start))
        return index
    if word in KEYWORD_ALIASES:
        tokens.append(Token(OP, KEYWORD_ALIASES[word], start))
    elif word in LITERAL_KEYWORDS:
        tokens.append(Token(LITERAL, LITERAL_KEYWORDS[word], start))
    else:
        tokens.append(Token(NAME, word, start))
    return index
