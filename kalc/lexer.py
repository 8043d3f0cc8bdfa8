"""
kalc - Lexer
Tokenizes calculator input into a flat token stream.
"""

import re
from dataclasses import dataclass
from typing import List
from enum import Enum, auto


class TokenType(Enum):
    # Literals
    LITERAL      = auto()
    IDENTIFIER   = auto()
    # Operators
    PLUS         = auto()   # +
    MINUS        = auto()   # -
    STAR         = auto()   # *
    SLASH        = auto()   # /
    POWER        = auto()   # ^
    EQUALS       = auto()   # =
    # Grouping / punctuation
    OPEN_PAREN   = auto()   # (
    CLOSED_PAREN = auto()   # )
    PIPE         = auto()   # |
    COMMA        = auto()   # ,
    # Unit suffixes
    DEG          = auto()   # deg, °
    RAD          = auto()   # rad
    # Sentinel
    EOF          = auto()

    @property
    def is_unit(self) -> bool:
        return self in (TokenType.DEG, TokenType.RAD)


UNIT_WORDS = {"deg": TokenType.DEG, "rad": TokenType.RAD}


@dataclass
class Token:
    type: TokenType
    value: str
    column: int = 0

    def compare(self, kind: TokenType) -> bool:
        """Kind-only comparison; the payload is ignored."""
        return self.type is kind

    def __repr__(self):
        return f"Token({self.type.name}, {self.value!r}, column={self.column})"


class LexerError(Exception):
    def __init__(self, message: str, column: int):
        super().__init__(f"[LexerError] Column {column}: {message}")
        self.column = column


# Token specification: ordered list of (TokenType, regex) pairs
_TOKEN_SPEC = [
    (TokenType.LITERAL,      r'\d+(?:\.\d*)?|\.\d+'),
    (TokenType.IDENTIFIER,   r'[^\W\d]+'),
    (TokenType.PLUS,         r'\+'),
    (TokenType.MINUS,        r'-'),
    (TokenType.STAR,         r'\*'),
    (TokenType.SLASH,        r'/'),
    (TokenType.POWER,        r'\^'),
    (TokenType.EQUALS,       r'='),
    (TokenType.OPEN_PAREN,   r'\('),
    (TokenType.CLOSED_PAREN, r'\)'),
    (TokenType.PIPE,         r'\|'),
    (TokenType.COMMA,        r','),
    (TokenType.DEG,          r'°'),
    (TokenType.IDENTIFIER,   r'√'),
]

_MASTER_RE = re.compile(
    r'(?:' + '|'.join(f'(?P<T{i}>{spec[1]})' for i, spec in enumerate(_TOKEN_SPEC)) + r')'
)

_WHITESPACE_RE = re.compile(r'\s+')


def tokenize(source: str) -> List[Token]:
    """
    Convert calculator input into a list of Tokens ending with EOF.
    Raises LexerError on unrecognized characters.
    """
    tokens: List[Token] = []
    pos = 0
    length = len(source)

    while pos < length:
        m = _WHITESPACE_RE.match(source, pos)
        if m:
            pos = m.end()
            continue

        m = _MASTER_RE.match(source, pos)
        if not m:
            raise LexerError(f"Unexpected character: {source[pos]!r}", pos)

        raw = m.group(0)
        tok_type = None
        for i, (ttype, _) in enumerate(_TOKEN_SPEC):
            if m.group(f'T{i}') is not None:
                tok_type = ttype
                break

        # Reclassify unit words and the radical sign
        if tok_type == TokenType.IDENTIFIER:
            if raw in UNIT_WORDS:
                tok_type = UNIT_WORDS[raw]
            elif raw == '√':
                raw = 'sqrt'

        tokens.append(Token(tok_type, raw, pos))
        pos = m.end()

    tokens.append(Token(TokenType.EOF, '', length))
    return tokens
