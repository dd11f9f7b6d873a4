"""
Lexer for tool formulas.

Only a closed set of characters is understood; anything else (member access,
brackets, assignment, statement separators) is rejected here, before parsing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List

from ..errors import DisallowedTokenError, FormulaSyntaxError

KEYWORDS = {"true", "false", "null", "and", "or", "not"}

# Host-language words that have no meaning in a formula. Rejecting them up front
# gives authors a clear message instead of an "unknown variable" error.
RESERVED_WORDS = {
    "import",
    "lambda",
    "def",
    "class",
    "for",
    "while",
    "if",
    "else",
    "return",
    "yield",
    "exec",
    "eval",
    "compile",
    "globals",
    "locals",
    "getattr",
    "setattr",
    "delattr",
    "function",
    "constructor",
    "prototype",
    "require",
}

TWO_CHAR_OPERATORS = {"==", "!=", "<=", ">=", "&&", "||"}
ONE_CHAR_OPERATORS = {"+", "-", "*", "/", "%", "^", "<", ">", "!"}

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "\\": "\\", "'": "'", '"': '"'}


@dataclass(frozen=True)
class Token:
    type: str
    value: Any
    position: int

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"Token({self.type}, {self.value!r}, @{self.position})"


class Lexer:
    def __init__(self, source: str) -> None:
        self.source = source
        self.pos = 0

    def tokenize(self) -> List[Token]:
        tokens: List[Token] = []
        src = self.source
        while self.pos < len(src):
            ch = src[self.pos]
            if ch.isspace():
                self.pos += 1
                continue
            start = self.pos
            if ch.isdigit() or (ch == "." and self._peek(1).isdigit()):
                tokens.append(Token("NUMBER", self._read_number(), start))
                continue
            if ch.isalpha() or ch == "_":
                tokens.append(self._read_word())
                continue
            if ch in {"'", '"'}:
                tokens.append(Token("STRING", self._read_string(ch), start))
                continue
            pair = src[self.pos : self.pos + 2]
            if pair in TWO_CHAR_OPERATORS:
                tokens.append(Token("OP", pair, start))
                self.pos += 2
                continue
            if ch in ONE_CHAR_OPERATORS:
                tokens.append(Token("OP", ch, start))
                self.pos += 1
                continue
            if ch == "(":
                tokens.append(Token("LPAREN", ch, start))
                self.pos += 1
                continue
            if ch == ")":
                tokens.append(Token("RPAREN", ch, start))
                self.pos += 1
                continue
            if ch == ",":
                tokens.append(Token("COMMA", ch, start))
                self.pos += 1
                continue
            raise DisallowedTokenError(self._describe_disallowed(ch), position=start)
        tokens.append(Token("EOF", None, len(src)))
        return tokens

    def _peek(self, offset: int = 0) -> str:
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return ""

    def _describe_disallowed(self, ch: str) -> str:
        if ch == "=":
            return f"Assignment is not allowed in formulas (position {self.pos}). Use '==' to compare values."
        if ch == ".":
            return f"Property access is not allowed in formulas (position {self.pos})."
        if ch in {"&", "|"}:
            return f"Use '&&' or '||' for boolean logic (position {self.pos})."
        return f"Character '{ch}' is not allowed in formulas (position {self.pos})."

    def _read_number(self) -> int | float:
        src = self.source
        start = self.pos
        while self._peek().isdigit():
            self.pos += 1
        is_float = False
        if self._peek() == "." and self._peek(1).isdigit():
            is_float = True
            self.pos += 1
            while self._peek().isdigit():
                self.pos += 1
        if self._peek() in {"e", "E"}:
            offset = 1
            if self._peek(1) in {"+", "-"}:
                offset = 2
            if self._peek(offset).isdigit():
                is_float = True
                self.pos += offset
                while self._peek().isdigit():
                    self.pos += 1
        if self._peek() == ".":
            raise DisallowedTokenError(
                f"Property access is not allowed in formulas (position {self.pos}).", position=self.pos
            )
        if self._peek().isalpha() or self._peek() == "_":
            raise FormulaSyntaxError(
                f"Unexpected '{self._peek()}' after number at position {self.pos}.", position=self.pos
            )
        text = src[start : self.pos]
        return float(text) if is_float else int(text)

    def _read_word(self) -> Token:
        start = self.pos
        while self._peek().isalnum() or self._peek() == "_":
            self.pos += 1
        word = self.source[start : self.pos]
        if word.startswith("__") or word in RESERVED_WORDS:
            raise DisallowedTokenError(f"'{word}' is not allowed in formulas.", position=start)
        if self._peek() == ".":
            raise DisallowedTokenError(
                f"Property access is not allowed in formulas ('{word}.' at position {start}).", position=start
            )
        if word in KEYWORDS:
            return Token("KEYWORD", word, start)
        return Token("IDENT", word, start)

    def _read_string(self, quote: str) -> str:
        start = self.pos
        self.pos += 1
        chars: list[str] = []
        while self.pos < len(self.source):
            ch = self.source[self.pos]
            if ch == "\\":
                nxt = self._peek(1)
                if not nxt:
                    break
                chars.append(_ESCAPES.get(nxt, nxt))
                self.pos += 2
                continue
            if ch == quote:
                self.pos += 1
                return "".join(chars)
            chars.append(ch)
            self.pos += 1
        raise FormulaSyntaxError(f"Unterminated string starting at position {start}.", position=start)


def tokenize(source: str) -> List[Token]:
    return Lexer(source).tokenize()
