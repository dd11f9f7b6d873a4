"""
Recursive-descent parser producing the immutable formula AST.

Precedence, lowest first: ``||``, ``&&``, equality, comparison, ``+ -``,
``* / %``, unary ``- + !``, ``^`` (right associative), calls and primaries.

``max_depth`` bounds nesting: parentheses, call arguments, unary operators
and ``^`` exponents. Chains of left-associative operators (``a + b + c``)
are not nesting and are bounded by the formula length alone.
"""

from __future__ import annotations

from typing import List

from ..config import DEFAULT_FORMULA_MAX_DEPTH, DEFAULT_FORMULA_MAX_LENGTH
from ..errors import DisallowedTokenError, FormulaSyntaxError
from .ast_nodes import BinaryOp, Call, Literal, Node, UnaryOp, Variable
from .builtins import BUILTIN_FUNCTIONS
from .lexer import Token, tokenize

_KEYWORD_OPS = {"and": "&&", "or": "||", "not": "!"}
_LITERAL_KEYWORDS = {"true": True, "false": False, "null": None}


class FormulaParser:
    def __init__(self, tokens: List[Token], *, max_depth: int = DEFAULT_FORMULA_MAX_DEPTH) -> None:
        self.tokens = tokens
        self.pos = 0
        self.max_depth = max_depth
        self._nesting = 0

    def parse(self) -> Node:
        if self._peek().type == "EOF":
            raise FormulaSyntaxError("Formula is empty.", position=0)
        node = self._parse_or()
        tok = self._peek()
        if tok.type != "EOF":
            raise FormulaSyntaxError(
                f"Unexpected {self._describe(tok)} at position {tok.position}.", position=tok.position
            )
        return node

    # helpers

    def _peek(self) -> Token:
        return self.tokens[self.pos]

    def _advance(self) -> Token:
        tok = self.tokens[self.pos]
        if tok.type != "EOF":
            self.pos += 1
        return tok

    def _match_op(self, *ops: str) -> str | None:
        tok = self._peek()
        if tok.type == "OP" and tok.value in ops:
            self._advance()
            return tok.value
        if tok.type == "KEYWORD" and _KEYWORD_OPS.get(tok.value) in ops:
            self._advance()
            return _KEYWORD_OPS[tok.value]
        return None

    def _describe(self, tok: Token) -> str:
        if tok.type == "EOF":
            return "end of formula"
        return f"'{tok.value}'"

    def _enter(self) -> None:
        self._nesting += 1
        if self._nesting > self.max_depth:
            raise FormulaSyntaxError(
                f"Formula is nested too deeply (limit {self.max_depth}).", position=self._peek().position
            )

    def _leave(self) -> None:
        self._nesting -= 1

    def _binary(self, ops: tuple[str, ...], operand) -> Node:
        left = operand()
        while True:
            op = self._match_op(*ops)
            if op is None:
                return left
            left = BinaryOp(op, left, operand())

    # grammar

    def _parse_or(self) -> Node:
        self._enter()
        try:
            return self._binary(("||",), self._parse_and)
        finally:
            self._leave()

    def _parse_and(self) -> Node:
        return self._binary(("&&",), self._parse_equality)

    def _parse_equality(self) -> Node:
        return self._binary(("==", "!="), self._parse_comparison)

    def _parse_comparison(self) -> Node:
        return self._binary(("<", "<=", ">", ">="), self._parse_additive)

    def _parse_additive(self) -> Node:
        return self._binary(("+", "-"), self._parse_multiplicative)

    def _parse_multiplicative(self) -> Node:
        return self._binary(("*", "/", "%"), self._parse_unary)

    def _parse_unary(self) -> Node:
        op = self._match_op("-", "+", "!")
        if op is None:
            return self._parse_power()
        self._enter()
        try:
            return UnaryOp(op, self._parse_unary())
        finally:
            self._leave()

    def _parse_power(self) -> Node:
        base = self._parse_primary()
        if self._match_op("^") is None:
            return base
        self._enter()
        try:
            return BinaryOp("^", base, self._parse_unary())
        finally:
            self._leave()

    def _parse_primary(self) -> Node:
        tok = self._advance()
        if tok.type in {"NUMBER", "STRING"}:
            return Literal(tok.value)
        if tok.type == "KEYWORD" and tok.value in _LITERAL_KEYWORDS:
            return Literal(_LITERAL_KEYWORDS[tok.value])
        if tok.type == "IDENT":
            if self._peek().type == "LPAREN":
                return self._parse_call(tok)
            return Variable(tok.value)
        if tok.type == "LPAREN":
            inner = self._parse_or()
            closing = self._advance()
            if closing.type != "RPAREN":
                raise FormulaSyntaxError(
                    f"Expected ')' but found {self._describe(closing)} at position {closing.position}.",
                    position=closing.position,
                )
            return inner
        raise FormulaSyntaxError(
            f"Unexpected {self._describe(tok)} at position {tok.position}.", position=tok.position
        )

    def _parse_call(self, name_tok: Token) -> Node:
        name = name_tok.value
        if name not in BUILTIN_FUNCTIONS:
            allowed = ", ".join(sorted(BUILTIN_FUNCTIONS))
            raise DisallowedTokenError(
                f"Function '{name}' is not allowed. Available functions: {allowed}.",
                position=name_tok.position,
            )
        self._advance()  # '('
        args: list[Node] = []
        if self._peek().type != "RPAREN":
            while True:
                args.append(self._parse_or())
                if self._peek().type == "COMMA":
                    self._advance()
                    continue
                break
        closing = self._advance()
        if closing.type != "RPAREN":
            raise FormulaSyntaxError(
                f"Expected ')' to close {name}( but found {self._describe(closing)} at position {closing.position}.",
                position=closing.position,
            )
        return Call(name, tuple(args))


def parse_formula(
    source: str,
    *,
    max_depth: int = DEFAULT_FORMULA_MAX_DEPTH,
    max_length: int = DEFAULT_FORMULA_MAX_LENGTH,
) -> Node:
    if not isinstance(source, str):
        raise FormulaSyntaxError("Formula must be a string.")
    if len(source) > max_length:
        raise FormulaSyntaxError(f"Formula is too long ({len(source)} characters, limit {max_length}).")
    return FormulaParser(tokenize(source), max_depth=max_depth).parse()
