"""
kalc - Calculator Session
Runs the phases for one input in sequence and keeps the session state
(declared variables and functions) between inputs.
"""

import json
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .lexer import tokenize, LexerError
from .parser import ParserContext, ParseError, parse_statements, evaluate_statements
from .interpreter import AngleUnit, EvaluationError
from .backends import get_backend
from .value import Number, format_number


class CalculationError(Exception):
    """Unified error wrapper for all phases."""
    pass


@dataclass
class Result:
    value: Optional[Number]
    display: str


class Calculator:
    def __init__(
        self,
        angle_unit: AngleUnit = AngleUnit.RADIANS,
        backend: str = "float",
        precision: int = None,
        debug: bool = False,
    ):
        """
        angle_unit : unit for untagged trigonometric arguments and results
        backend    : 'float' or 'decimal'
        precision  : significant digits for the 'decimal' backend
        debug      : print each phase summary to stderr
        """
        self.angle_unit = angle_unit
        self.debug = debug
        self.context = ParserContext(backend=get_backend(backend, precision))

    @property
    def backend(self):
        return self.context.backend

    @property
    def symbol_table(self):
        return self.context.symbol_table

    def _log(self, msg: str) -> None:
        if self.debug:
            print(f"[kalc] {msg}", file=sys.stderr)

    def evaluate(self, source: str) -> Result:
        """
        Evaluate one input in this session.

        Raises
        ------
        CalculationError on any phase failure
        """
        # ── Phase 1: Lexical analysis ────────────────────────────────────────
        self._log("Phase 1: Lexical analysis")
        try:
            tokens = tokenize(source)
        except LexerError as e:
            raise CalculationError(str(e)) from e

        self._log(f"  {len(tokens)-1} tokens produced")

        # ── Phase 2: Parsing ─────────────────────────────────────────────────
        self._log("Phase 2: Parsing")
        try:
            statements = parse_statements(self.context, tokens)
        except ParseError as e:
            raise CalculationError(str(e)) from e

        self._log(f"  {len(statements)} statements")

        # ── Phase 3: Evaluation ──────────────────────────────────────────────
        self._log(f"Phase 3: Evaluation ({self.angle_unit.name.lower()}, {self.backend.name})")
        try:
            value = evaluate_statements(self.context, statements, self.angle_unit)
        except EvaluationError as e:
            raise CalculationError(str(e)) from e

        # ── Phase 4: Estimation ──────────────────────────────────────────────
        if value is None:
            self._log("  No value produced")
            return Result(value=None, display="")

        self._log("Phase 4: Estimation")
        with self.backend.scope():
            display = format_number(value)
        self._log(f"  {display}")
        return Result(value=value, display=display)

    def emit_ast(self, source: str) -> str:
        """Parse ``source`` and return its statements as JSON, without evaluating."""
        try:
            statements = parse_statements(self.context, tokenize(source))
        except (LexerError, ParseError) as e:
            raise CalculationError(str(e)) from e
        return _ast_to_json(statements)


def calculate(source: str, angle_unit: AngleUnit = AngleUnit.RADIANS, backend: str = "float") -> str:
    """One-shot evaluation in a fresh session; returns the display string."""
    return Calculator(angle_unit=angle_unit, backend=backend).evaluate(source).display


# ── AST serialization (for --emit-ast) ────────────────────────────────────────

def _ast_to_json(node) -> str:
    return json.dumps(_node_to_dict(node), indent=2, ensure_ascii=False)


def _node_to_dict(node):
    if node is None:
        return None
    if isinstance(node, list):
        return [_node_to_dict(n) for n in node]
    if isinstance(node, Enum):
        return node.name  # TokenType
    if not hasattr(node, '__dataclass_fields__'):
        return node  # primitive
    d = {"_type": type(node).__name__}
    for field_name in node.__dataclass_fields__:
        val = getattr(node, field_name)
        d[field_name] = _node_to_dict(val)
    return d
