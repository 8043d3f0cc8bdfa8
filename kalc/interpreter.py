"""
kalc - Interpreter
Evaluates parsed statements to a Number. Variables and functions are
recorded in the session's symbol table, so they outlive a single call.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from . import prelude
from . import value as V
from .ast_nodes import (
    Expr, Stmt, Binary, Unary, Unit, Var, Group, FnCall, Literal,
    VarDecl, FnDecl, ExprStmt,
)
from .lexer import TokenType
from .symbol_table import SymbolTable, function_key
from .value import Number, DEFAULT_BACKEND


class AngleUnit(Enum):
    RADIANS = "rad"
    DEGREES = "deg"


class EvaluationError(Exception):
    def __init__(self, message: str):
        super().__init__(f"[EvaluationError] {message}")
        self.reason = message


@dataclass
class Evaluated(Expr):
    """A variable's value, computed once when it was declared."""
    value: Number = None


_UNIT_NAMES = {
    TokenType.DEG: AngleUnit.DEGREES.value,
    TokenType.RAD: AngleUnit.RADIANS.value,
}

_BINARY_OPS = {
    TokenType.PLUS:  V.add,
    TokenType.MINUS: V.subtract,
    TokenType.STAR:  V.multiply,
    TokenType.SLASH: V.divide,
    TokenType.POWER: V.power,
}


class Interpreter:
    def __init__(
        self,
        angle_unit: AngleUnit = AngleUnit.RADIANS,
        symbol_table: SymbolTable = None,
        backend=None,
    ):
        self.angle_unit = angle_unit
        self.symbol_table = symbol_table if symbol_table is not None else SymbolTable()
        self.backend = backend if backend is not None else DEFAULT_BACKEND
        # Parameter bindings of the user functions currently being called
        self._scopes: List[Dict[str, Number]] = []

    def interpret(self, statements: List[Stmt]) -> Optional[Number]:
        """
        Evaluate ``statements`` in order and return the value of the last one
        (None if it was a function declaration).
        """
        result = None
        with self.backend.scope():
            try:
                for stmt in statements:
                    result = self._visit(stmt)
            except RecursionError:
                raise EvaluationError("Maximum recursion depth exceeded") from None
            except (ArithmeticError, ValueError) as e:
                raise EvaluationError(str(e) or type(e).__name__) from e
        return result

    # ------------------------------------------------------------------ angles

    def to_radians(self, magnitude, unit: str = ""):
        unit = unit or self.angle_unit.value
        if unit == AngleUnit.DEGREES.value:
            return magnitude * self.backend.pi() / 180
        return magnitude

    def from_radians(self, magnitude):
        if self.angle_unit is AngleUnit.DEGREES:
            return magnitude * 180 / self.backend.pi()
        return magnitude

    # ------------------------------------------------------------------ visitor

    def _visit(self, node):
        method = f"_visit_{type(node).__name__}"
        visitor = getattr(self, method, None)
        if visitor is None:
            raise EvaluationError(f"Cannot evaluate {type(node).__name__}")
        return visitor(node)

    # statements

    def _visit_VarDecl(self, node: VarDecl) -> Number:
        result = self._visit(node.value)
        self.symbol_table.insert(node.name, VarDecl(name=node.name, value=Evaluated(value=result)))
        return result

    def _visit_FnDecl(self, node: FnDecl) -> None:
        self.symbol_table.insert(function_key(node.name), node)
        return None

    def _visit_ExprStmt(self, node: ExprStmt) -> Number:
        return self._visit(node.expr)

    # expressions

    def _visit_Binary(self, node: Binary) -> Number:
        left = self._visit(node.left)
        right = self._visit(node.right)
        try:
            op = _BINARY_OPS[node.op]
        except KeyError:
            raise EvaluationError(f"Unknown operator {node.op}") from None
        return op(left, right)

    def _visit_Unary(self, node: Unary) -> Number:
        operand = self._visit(node.operand)
        if node.op is not TokenType.MINUS:
            raise EvaluationError(f"Unknown unary operator {node.op}")
        return V.negate(operand)

    def _visit_Unit(self, node: Unit) -> Number:
        return self._visit(node.operand).with_unit(_UNIT_NAMES[node.unit])

    def _visit_Group(self, node: Group) -> Number:
        return self._visit(node.inner)

    def _visit_Literal(self, node: Literal) -> Number:
        try:
            magnitude = self.backend.number(node.text)
        except (ValueError, ArithmeticError):
            raise EvaluationError(f"Invalid number literal {node.text!r}") from None
        return Number.of(magnitude, backend=self.backend)

    def _visit_Evaluated(self, node: Evaluated) -> Number:
        return node.value

    def _visit_Var(self, node: Var) -> Number:
        # Only the innermost call's parameters are visible
        if self._scopes and node.name in self._scopes[-1]:
            return self._scopes[-1][node.name]

        decl = self.symbol_table.get(node.name)
        if isinstance(decl, VarDecl):
            return self._visit(decl.value)
        if prelude.is_constant(node.name):
            return prelude.get_constant(node.name, self.backend)
        raise EvaluationError(f"Undefined variable '{node.name}'")

    def _visit_FnCall(self, node: FnCall) -> Number:
        args = [self._visit(arg) for arg in node.arguments]

        decl = self.symbol_table.get_func(node.name)
        if isinstance(decl, FnDecl):
            if len(args) != len(decl.parameters):
                raise EvaluationError(
                    f"{node.name}() takes {len(decl.parameters)} argument(s), got {len(args)}"
                )
            self._scopes.append(dict(zip(decl.parameters, args)))
            try:
                return self._visit(decl.body)
            finally:
                self._scopes.pop()

        if prelude.is_prelude_func(node.name):
            return prelude.call(self, node.name, args)

        raise EvaluationError(f"Undefined function '{node.name}'")
