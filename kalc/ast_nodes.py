"""
kalc - AST Node Definitions
Statement and expression trees produced by the parser and consumed by the
interpreter. Nodes are not mutated after construction.
"""

from dataclasses import dataclass, field
from typing import List

from .lexer import TokenType


class Expr:
    """Base class for all expression nodes."""


class Stmt:
    """Base class for all statement nodes."""


# ── Expressions ───────────────────────────────────────────────────────────────

@dataclass
class Binary(Expr):
    """left op right"""
    left: Expr = None
    op: TokenType = None
    right: Expr = None


@dataclass
class Unary(Expr):
    """-operand"""
    op: TokenType = None
    operand: Expr = None


@dataclass
class Unit(Expr):
    """operand deg / operand rad"""
    operand: Expr = None
    unit: TokenType = None


@dataclass
class Var(Expr):
    """A variable reference."""
    name: str = ""


@dataclass
class Group(Expr):
    """(inner)"""
    inner: Expr = None


@dataclass
class FnCall(Expr):
    """name(arg, ...)"""
    name: str = ""
    arguments: List[Expr] = field(default_factory=list)


@dataclass
class Literal(Expr):
    """A numeric literal, kept as the source text."""
    text: str = ""


# ── Statements ────────────────────────────────────────────────────────────────

@dataclass
class VarDecl(Stmt):
    """name = value"""
    name: str = ""
    value: Expr = None


@dataclass
class FnDecl(Stmt):
    """name(param, ...) = body"""
    name: str = ""
    parameters: List[str] = field(default_factory=list)
    body: Expr = None


@dataclass
class ExprStmt(Stmt):
    """A bare expression statement."""
    expr: Expr = None
