"""
kalc - Recursive Descent Parser
Converts a token stream into a list of statements and hands them to the
interpreter.

Grammar, loosest binding first:

    stmt     := IDENT '=' expr
              | IDENT '(' expr (',' expr)* ')' '=' expr
              | expr
    expr     := factor (('+' | '-') factor)*
    factor   := unary (('*' | '/' | <implicit before IDENT>) unary)*
    unary    := '-' unary | exponent
    exponent := primary ('^' unary)?
    primary  := ('(' expr ')' | '|' expr '|' | identifier | LITERAL) unit?

Function declarations and calls look the same up to the '='. A statement
that starts with ``name(`` is parsed as a call first; if an '=' follows, the
call is rewritten into a declaration, otherwise the cursor is rewound and
the statement is parsed again as an expression.
"""

from contextlib import contextmanager
from typing import Iterable, List, Optional, Union

from .lexer import Token, TokenType, tokenize
from .ast_nodes import (
    Expr, Stmt, Binary, Unary, Unit, Var, Group, FnCall, Literal,
    VarDecl, FnDecl, ExprStmt,
)
from .symbol_table import SymbolTable, function_key
from .value import Number, DEFAULT_BACKEND
from .interpreter import Interpreter, AngleUnit


class ParseError(Exception):
    def __init__(self, message: str, position: int):
        super().__init__(f"[ParseError] Position {position}: {message}")
        self.position = position


class UnexpectedTokenError(ParseError):
    def __init__(self, expected: TokenType, found: Token, position: int):
        super().__init__(
            f"Expected {expected.name} but got {found.type.name} ({found.value!r})",
            position,
        )
        self.expected = expected
        self.found = found


class InvalidParameterListError(ParseError):
    def __init__(self, name: str, position: int):
        super().__init__(
            f"Invalid parameter list for function '{name}': "
            f"parameters must be plain names",
            position,
        )
        self.name = name


class Speculation:
    """A recorded cursor position that is restored unless committed."""

    def __init__(self, start: int):
        self.start = start
        self.committed = False

    def commit(self) -> None:
        self.committed = True


class ParserContext:
    """
    Parse session state. The symbol table outlives a single parse, so
    functions declared in one call are known to the next.
    """

    def __init__(self, symbol_table: SymbolTable = None, backend=None):
        self.tokens: List[Token] = []
        self.pos = 0
        self.symbol_table = symbol_table if symbol_table is not None else SymbolTable()
        self.backend = backend if backend is not None else DEFAULT_BACKEND

    def load(self, tokens: Iterable[Token]) -> None:
        tokens = list(tokens)
        if not tokens or tokens[-1].type is not TokenType.EOF:
            column = tokens[-1].column + 1 if tokens else 0
            tokens.append(Token(TokenType.EOF, '', column))
        self.tokens = tokens
        self.pos = 0

    @contextmanager
    def speculate(self):
        """Snapshot the cursor; restore it on exit unless the attempt commits."""
        attempt = Speculation(self.pos)
        try:
            yield attempt
        finally:
            if not attempt.committed:
                self.pos = attempt.start


class Parser:
    def __init__(self, context: ParserContext):
        self._ctx = context

    # ------------------------------------------------------------------ helpers

    def _is_at_end(self) -> bool:
        ctx = self._ctx
        return ctx.pos >= len(ctx.tokens) or ctx.tokens[ctx.pos].type is TokenType.EOF

    def _peek(self) -> Token:
        if self._ctx.pos >= len(self._ctx.tokens):
            return self._ctx.tokens[-1]
        return self._ctx.tokens[self._ctx.pos]

    def _peek_next(self) -> Optional[Token]:
        if self._ctx.pos + 1 < len(self._ctx.tokens):
            return self._ctx.tokens[self._ctx.pos + 1]
        return None

    def _advance(self) -> Token:
        tok = self._peek()
        if not self._is_at_end():
            self._ctx.pos += 1
        return tok

    def _match(self, *types: TokenType) -> bool:
        if self._is_at_end():
            return False
        return any(self._peek().compare(t) for t in types)

    def _expect(self, ttype: TokenType) -> Token:
        if not self._match(ttype):
            raise UnexpectedTokenError(ttype, self._peek(), self._ctx.pos)
        return self._advance()

    # ------------------------------------------------------------------ public

    def parse(self) -> List[Stmt]:
        stmts = []
        try:
            while not self._is_at_end():
                stmts.append(self._parse_statement())
        except RecursionError:
            raise ParseError("Expression nested too deeply", self._ctx.pos) from None
        return stmts

    # ------------------------------------------------------------------ statements

    def _parse_statement(self) -> Stmt:
        if self._match(TokenType.IDENTIFIER):
            nxt = self._peek_next()
            if nxt is not None and nxt.type is TokenType.EQUALS:
                return self._parse_var_decl()
            if nxt is not None and nxt.type is TokenType.OPEN_PAREN:
                return self._parse_identifier_stmt()

        return ExprStmt(expr=self._parse_expression())

    def _parse_var_decl(self) -> VarDecl:
        name_tok = self._advance()          # IDENTIFIER
        self._expect(TokenType.EQUALS)
        value = self._parse_expression()
        return VarDecl(name=name_tok.value, value=value)

    def _parse_identifier_stmt(self) -> Stmt:
        # Parse a call; if '=' follows, it was a declaration all along.
        with self._ctx.speculate() as attempt:
            primary = self._parse_primary()
            if self._match(TokenType.EQUALS):
                attempt.commit()
                self._advance()
                body = self._parse_expression()
                return self._declare_function(primary, body, attempt.start)

        return ExprStmt(expr=self._parse_expression())

    def _declare_function(self, call: Expr, body: Expr, position: int) -> FnDecl:
        if not isinstance(call, FnCall):
            raise ParseError("Invalid function declaration", position)

        parameters = []
        for argument in call.arguments:
            if not isinstance(argument, Var):
                raise InvalidParameterListError(call.name, position)
            parameters.append(argument.name)

        decl = FnDecl(name=call.name, parameters=parameters, body=body)
        # Later statements need to know this name is a function.
        self._ctx.symbol_table.insert(function_key(call.name), decl)
        return decl

    # ------------------------------------------------------------------ expressions

    def _parse_expression(self) -> Expr:
        return self._parse_sum()

    def _parse_sum(self) -> Expr:
        left = self._parse_factor()

        while self._match(TokenType.PLUS, TokenType.MINUS):
            op = self._advance().type
            right = self._parse_factor()
            left = Binary(left=left, op=op, right=right)

        return left

    def _parse_factor(self) -> Expr:
        left = self._parse_unary()

        while self._match(TokenType.STAR, TokenType.SLASH, TokenType.IDENTIFIER):
            # An identifier where an operator should be: 3y means 3 * y
            if self._match(TokenType.IDENTIFIER):
                op = TokenType.STAR
            else:
                op = self._advance().type
            right = self._parse_unary()
            left = Binary(left=left, op=op, right=right)

        return left

    def _parse_unary(self) -> Expr:
        if self._match(TokenType.MINUS):
            op = self._advance().type
            return Unary(op=op, operand=self._parse_unary())
        return self._parse_exponent()

    def _parse_exponent(self) -> Expr:
        left = self._parse_primary()

        if self._match(TokenType.POWER):
            op = self._advance().type
            # Right associative; a sign is allowed on the exponent (2^-1)
            right = self._parse_unary()
            return Binary(left=left, op=op, right=right)

        return left

    def _parse_primary(self) -> Expr:
        if self._match(TokenType.OPEN_PAREN):
            expr = self._parse_group()
        elif self._match(TokenType.PIPE):
            expr = self._parse_abs()
        elif self._match(TokenType.IDENTIFIER):
            expr = self._parse_identifier()
        else:
            expr = Literal(text=self._expect(TokenType.LITERAL).value)

        if not self._is_at_end() and self._peek().type.is_unit:
            expr = Unit(operand=expr, unit=self._advance().type)

        return expr

    def _parse_group(self) -> Group:
        self._advance()
        inner = self._parse_expression()
        self._expect(TokenType.CLOSED_PAREN)
        return Group(inner=inner)

    def _parse_abs(self) -> FnCall:
        self._advance()
        inner = self._parse_expression()
        self._expect(TokenType.PIPE)
        return FnCall(name="abs", arguments=[Group(inner=inner)])

    def _parse_identifier(self) -> Expr:
        name = self._advance().value

        # sqrt64: a known function directly followed by a number
        if self._match(TokenType.LITERAL) and self._ctx.symbol_table.contains_func(name):
            argument = Literal(text=self._advance().value)
            return FnCall(name=name, arguments=[argument])

        # f(x, y)
        if self._match(TokenType.OPEN_PAREN):
            self._advance()
            arguments = [self._parse_expression()]
            while self._match(TokenType.COMMA):
                self._advance()
                arguments.append(self._parse_expression())
            self._expect(TokenType.CLOSED_PAREN)
            return FnCall(name=name, arguments=arguments)

        return Var(name=name)


# ── Entry points ──────────────────────────────────────────────────────────────

def parse_statements(context: ParserContext, source: Union[str, Iterable[Token]]) -> List[Stmt]:
    """Load ``source`` (text or tokens) into ``context`` and parse every statement."""
    tokens = tokenize(source) if isinstance(source, str) else source
    context.load(tokens)
    return Parser(context).parse()


def parse(
    context: ParserContext,
    source: Union[str, Iterable[Token]],
    angle_unit: AngleUnit = AngleUnit.RADIANS,
) -> Optional[Number]:
    """
    Parse ``source`` and evaluate it in ``context``'s session.

    Raises LexerError / ParseError for malformed input and EvaluationError
    (unchanged from the interpreter) when evaluation fails.
    """
    return evaluate_statements(context, parse_statements(context, source), angle_unit)


def evaluate_statements(
    context: ParserContext,
    statements: List[Stmt],
    angle_unit: AngleUnit = AngleUnit.RADIANS,
) -> Optional[Number]:
    """Run already parsed ``statements`` against ``context``'s session."""
    interpreter = Interpreter(angle_unit, context.symbol_table, context.backend)
    return interpreter.interpret(statements)
