"""Metalox tokenizer — lexes source into a flat token list."""

from __future__ import annotations


# Token type constants
TK_NUMBER = "NUMBER"
TK_STRING = "STRING"
TK_IDENT = "IDENT"
TK_OP = "OP"
TK_EOF = "EOF"

# Keyword tokens use the keyword itself as their type.
KEYWORDS: set[str] = {
    "and",
    "class",
    "else",
    "false",
    "for",
    "fun",
    "if",
    "nil",
    "or",
    "print",
    "return",
    "super",
    "this",
    "true",
    "var",
    "while",
}

TWO_CHAR_OPS: list[str] = [
    "!=",
    "==",
    "<=",
    ">=",
]

SINGLE_OPS: set[str] = {
    "(",
    ")",
    "{",
    "}",
    ",",
    ".",
    "-",
    "+",
    ";",
    "*",
    "/",
    "!",
    "=",
    "<",
    ">",
}


class TokenizeError(Exception):
    """Error during tokenization."""

    def __init__(self, msg: str, line: int):
        self.msg: str = msg
        self.line: int = line
        super().__init__("[line " + str(line) + "] Error: " + msg)


class Token:
    """A token with type, source lexeme, line, and literal value."""

    def __init__(
        self, type_: str, lexeme: str, line: int, literal: float | str | None = None
    ):
        self.type: str = type_
        self.lexeme: str = lexeme
        self.line: int = line
        self.literal: float | str | None = literal

    def __repr__(self) -> str:
        return (
            "Token("
            + self.type
            + ", "
            + repr(self.lexeme)
            + ", "
            + str(self.line)
            + ")"
        )


def _is_digit(c: str) -> bool:
    return c >= "0" and c <= "9"


def _is_alpha(c: str) -> bool:
    return (c >= "a" and c <= "z") or (c >= "A" and c <= "Z") or c == "_"


def _is_alnum(c: str) -> bool:
    return _is_alpha(c) or _is_digit(c)


def tokenize(source: str) -> list[Token]:
    """Tokenize Metalox source into a flat list ending with TK_EOF."""
    tokens: list[Token] = []
    pos = 0
    line = 1
    length = len(source)

    while pos < length:
        c = source[pos]

        if c == "\n":
            pos += 1
            line += 1
            continue

        if c == " " or c == "\t" or c == "\r":
            pos += 1
            continue

        # Line comment: //
        if c == "/" and pos + 1 < length and source[pos + 1] == "/":
            while pos < length and source[pos] != "\n":
                pos += 1
            continue

        # Block comment: /* ... */
        if c == "/" and pos + 1 < length and source[pos + 1] == "*":
            start_line = line
            pos += 2
            while pos < length and not (
                source[pos] == "*" and pos + 1 < length and source[pos + 1] == "/"
            ):
                if source[pos] == "\n":
                    line += 1
                pos += 1
            if pos >= length:
                raise TokenizeError("Unterminated comment.", start_line)
            pos += 2
            continue

        start_pos = pos
        start_line = line

        # Number: int or decimal, always a double at runtime
        if _is_digit(c):
            while pos < length and _is_digit(source[pos]):
                pos += 1
            if (
                pos + 1 < length
                and source[pos] == "."
                and _is_digit(source[pos + 1])
            ):
                pos += 1
                while pos < length and _is_digit(source[pos]):
                    pos += 1
            raw = source[start_pos:pos]
            tokens.append(Token(TK_NUMBER, raw, start_line, float(raw)))
            continue

        # String literal: "...", may span lines, no escapes
        if c == '"':
            pos += 1
            while pos < length and source[pos] != '"':
                if source[pos] == "\n":
                    line += 1
                pos += 1
            if pos >= length:
                raise TokenizeError("Unterminated string.", line)
            pos += 1  # skip closing "
            raw = source[start_pos:pos]
            tokens.append(Token(TK_STRING, raw, start_line, raw[1:-1]))
            continue

        # Identifier or keyword
        if _is_alpha(c):
            while pos < length and _is_alnum(source[pos]):
                pos += 1
            word = source[start_pos:pos]
            if word in KEYWORDS:
                tokens.append(Token(word, word, start_line))
            else:
                tokens.append(Token(TK_IDENT, word, start_line))
            continue

        two = source[pos : pos + 2]
        if two in TWO_CHAR_OPS:
            tokens.append(Token(TK_OP, two, start_line))
            pos += 2
            continue

        if c in SINGLE_OPS:
            tokens.append(Token(TK_OP, c, start_line))
            pos += 1
            continue

        raise TokenizeError("Unexpected character " + repr(c) + ".", line)

    tokens.append(Token(TK_EOF, "", line))
    return tokens
