"""
kalc - Test Suite
Tests for the Lexer, Parser, Rounding/Estimation, Backends, Interpreter,
Calculator session and CLI.
"""

import sys
import os
import io
import json
import math
import tempfile
import unittest
from contextlib import redirect_stdout, redirect_stderr
from decimal import Decimal

# Allow running from project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from kalc.lexer import tokenize, Token, TokenType, LexerError
from kalc.parser import (
    parse, parse_statements, ParserContext,
    ParseError, UnexpectedTokenError, InvalidParameterListError,
)
from kalc.ast_nodes import (
    Binary, Unary, Unit, Var, Group, FnCall, Literal,
    VarDecl, FnDecl, ExprStmt,
)
from kalc.interpreter import AngleUnit, EvaluationError
from kalc.rounding import estimate, round_value, trim_zeroes, ComplexNumberType
from kalc.value import Number, format_number
from kalc.backends import get_backend, FloatBackend, DecimalBackend
from kalc.calculator import Calculator, CalculationError, calculate
from kalc.cli import main


# ═══════════════════════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════════════════════

REAL = ComplexNumberType.REAL
IMAGINARY = ComplexNumberType.IMAGINARY


def token_types(source: str):
    return [t.type for t in tokenize(source) if t.type != TokenType.EOF]


def parse_(source: str, context: ParserContext = None):
    return parse_statements(context or ParserContext(), source)


def expr_(source: str):
    stmts = parse_(source)
    assert len(stmts) == 1 and isinstance(stmts[0], ExprStmt), stmts
    return stmts[0].expr


def estimate_(x, component=REAL):
    return estimate(Number.of(x), component)


def run_cli(*argv) -> str:
    out = io.StringIO()
    with redirect_stdout(out):
        main(list(argv))
    return out.getvalue()


# ═══════════════════════════════════════════════════════════════════════════════
# Lexer Tests
# ═══════════════════════════════════════════════════════════════════════════════

class TestLexer(unittest.TestCase):

    def test_literal(self):
        toks = tokenize("3.14")
        self.assertEqual(toks[0].type, TokenType.LITERAL)
        self.assertEqual(toks[0].value, "3.14")

    def test_leading_point_literal(self):
        self.assertEqual(token_types(".5"), [TokenType.LITERAL])

    def test_ends_with_eof(self):
        toks = tokenize("1 + 2")
        self.assertEqual(toks[-1].type, TokenType.EOF)
        self.assertEqual(tokenize("")[0].type, TokenType.EOF)

    def test_implicit_multiplication_tokens(self):
        self.assertEqual(token_types("3y"), [TokenType.LITERAL, TokenType.IDENTIFIER])

    def test_digits_end_identifier(self):
        toks = [t for t in tokenize("sqrt64") if t.type != TokenType.EOF]
        self.assertEqual([t.value for t in toks], ["sqrt", "64"])

    def test_operators(self):
        self.assertEqual(
            token_types("+-*/^=,"),
            [TokenType.PLUS, TokenType.MINUS, TokenType.STAR, TokenType.SLASH,
             TokenType.POWER, TokenType.EQUALS, TokenType.COMMA],
        )

    def test_grouping(self):
        self.assertEqual(
            token_types("(|x|)"),
            [TokenType.OPEN_PAREN, TokenType.PIPE, TokenType.IDENTIFIER,
             TokenType.PIPE, TokenType.CLOSED_PAREN],
        )

    def test_unit_suffixes(self):
        self.assertEqual(token_types("90deg"), [TokenType.LITERAL, TokenType.DEG])
        self.assertEqual(token_types("90°"), [TokenType.LITERAL, TokenType.DEG])
        self.assertEqual(token_types("2 rad"), [TokenType.LITERAL, TokenType.RAD])

    def test_radical_sign(self):
        toks = tokenize("√2")
        self.assertEqual(toks[0].type, TokenType.IDENTIFIER)
        self.assertEqual(toks[0].value, "sqrt")

    def test_greek_identifier(self):
        toks = tokenize("2π")
        self.assertEqual(toks[1].type, TokenType.IDENTIFIER)
        self.assertEqual(toks[1].value, "π")

    def test_invalid_character(self):
        with self.assertRaises(LexerError) as cm:
            tokenize("1 $ 2")
        self.assertEqual(cm.exception.column, 2)

    def test_compare_ignores_payload(self):
        self.assertTrue(Token(TokenType.LITERAL, "1").compare(TokenType.LITERAL))
        self.assertFalse(Token(TokenType.LITERAL, "1").compare(TokenType.IDENTIFIER))

    def test_is_unit(self):
        self.assertTrue(TokenType.DEG.is_unit)
        self.assertTrue(TokenType.RAD.is_unit)
        self.assertFalse(TokenType.IDENTIFIER.is_unit)


# ═══════════════════════════════════════════════════════════════════════════════
# Parser Tests
# ═══════════════════════════════════════════════════════════════════════════════

class TestParser(unittest.TestCase):

    def test_implicit_multiplication_matches_explicit(self):
        self.assertEqual(expr_("3y"), expr_("3*y"))
        self.assertEqual(
            expr_("3y"),
            Binary(left=Literal(text="3"), op=TokenType.STAR, right=Var(name="y")),
        )

    def test_precedence(self):
        e = expr_("1 + 2 * 3")
        self.assertEqual(e.op, TokenType.PLUS)
        self.assertIsInstance(e.right, Binary)
        self.assertEqual(e.right.op, TokenType.STAR)

    def test_left_associative_sum(self):
        e = expr_("1 - 2 - 3")
        self.assertEqual(e.op, TokenType.MINUS)
        self.assertIsInstance(e.left, Binary)
        self.assertEqual(e.right, Literal(text="3"))

    def test_exponent_right_associative(self):
        e = expr_("2^3^2")
        self.assertEqual(e.left, Literal(text="2"))
        self.assertEqual(e.right.op, TokenType.POWER)

    def test_unary_looser_than_exponent(self):
        e = expr_("-2^2")
        self.assertIsInstance(e, Unary)
        self.assertEqual(e.operand.op, TokenType.POWER)

    def test_unary_tighter_than_product(self):
        e = expr_("-2 * 3")
        self.assertIsInstance(e, Binary)
        self.assertIsInstance(e.left, Unary)

    def test_signed_exponent(self):
        e = expr_("2^-1")
        self.assertEqual(e.op, TokenType.POWER)
        self.assertIsInstance(e.right, Unary)

    def test_group(self):
        e = expr_("(1 + 2) * 3")
        self.assertIsInstance(e.left, Group)

    def test_absolute_value_bars(self):
        e = expr_("|x - 1|")
        self.assertIsInstance(e, FnCall)
        self.assertEqual(e.name, "abs")
        self.assertEqual(len(e.arguments), 1)
        self.assertIsInstance(e.arguments[0], Group)

    def test_unit_suffix(self):
        e = expr_("90deg")
        self.assertEqual(e, Unit(operand=Literal(text="90"), unit=TokenType.DEG))

    def test_unit_after_call(self):
        e = expr_("f(2) rad")
        self.assertIsInstance(e, Unit)
        self.assertIsInstance(e.operand, FnCall)

    def test_var_decl(self):
        stmt = parse_("x = 1 + 2")[0]
        self.assertIsInstance(stmt, VarDecl)
        self.assertEqual(stmt.name, "x")
        self.assertIsInstance(stmt.value, Binary)

    def test_fn_decl(self):
        context = ParserContext()
        stmt = parse_("f(x, y) = x + y", context)[0]
        self.assertIsInstance(stmt, FnDecl)
        self.assertEqual(stmt.name, "f")
        self.assertEqual(stmt.parameters, ["x", "y"])
        self.assertIn("f()", context.symbol_table)
        self.assertTrue(context.symbol_table.contains_func("f"))
        self.assertFalse(context.symbol_table.contains_var("f"))

    def test_symbol_table_counts_declarations(self):
        context = ParserContext()
        self.assertEqual(len(context.symbol_table), 0)
        parse_("f(x) = x", context)
        self.assertEqual(len(context.symbol_table), 1)
        parse_("f(y) = 2y", context)
        self.assertEqual(len(context.symbol_table), 1)

    def test_deep_nesting_is_parse_error(self):
        source = "(" * 1200 + "1" + ")" * 1200
        with self.assertRaises(ParseError) as cm:
            parse_(source)
        self.assertIn("nested too deeply", str(cm.exception))

    def test_call_statement_is_rewound(self):
        context = ParserContext()
        stmts = parse_("f(2) + 1", context)
        self.assertEqual(len(stmts), 1)
        e = stmts[0].expr
        self.assertEqual(e.op, TokenType.PLUS)
        self.assertEqual(e.left, FnCall(name="f", arguments=[Literal(text="2")]))
        self.assertNotIn("f()", context.symbol_table)

    def test_call_arguments(self):
        e = expr_("max(1, 2 + 3, x)")
        self.assertEqual(len(e.arguments), 3)

    def test_invalid_parameter_list(self):
        with self.assertRaises(InvalidParameterListError) as cm:
            parse_("f(2) = 3")
        self.assertEqual(cm.exception.name, "f")

    def test_invalid_parameter_list_is_parse_error(self):
        with self.assertRaises(ParseError):
            parse_("f(x, 1 + y) = x")

    def test_missing_closing_paren(self):
        with self.assertRaises(UnexpectedTokenError) as cm:
            parse_("(1 + 2")
        self.assertEqual(cm.exception.expected, TokenType.CLOSED_PAREN)
        self.assertEqual(cm.exception.found.type, TokenType.EOF)
        self.assertEqual(cm.exception.position, 4)

    def test_missing_closing_pipe(self):
        with self.assertRaises(UnexpectedTokenError) as cm:
            parse_("|1 + 2")
        self.assertEqual(cm.exception.expected, TokenType.PIPE)

    def test_dangling_operator(self):
        with self.assertRaises(UnexpectedTokenError) as cm:
            parse_("2 +")
        self.assertEqual(cm.exception.expected, TokenType.LITERAL)

    def test_juxtaposed_call_of_builtin(self):
        self.assertEqual(expr_("sqrt64"), FnCall(name="sqrt", arguments=[Literal(text="64")]))

    def test_juxtaposition_needs_known_function(self):
        stmts = parse_("g2")
        self.assertEqual(stmts, [ExprStmt(expr=Var(name="g")), ExprStmt(expr=Literal(text="2"))])

    def test_declared_function_visible_to_later_parses(self):
        context = ParserContext()
        parse_("g(x) = 2x", context)
        stmts = parse_("g3", context)
        self.assertEqual(stmts, [ExprStmt(expr=FnCall(name="g", arguments=[Literal(text="3")]))])

    def test_speculation_restores_cursor(self):
        context = ParserContext()
        context.load(tokenize("1 2 3"))
        context.pos = 1
        with context.speculate():
            context.pos = 3
        self.assertEqual(context.pos, 1)

    def test_speculation_commit_keeps_cursor(self):
        context = ParserContext()
        context.load(tokenize("1 2 3"))
        with context.speculate() as attempt:
            context.pos = 2
            attempt.commit()
        self.assertEqual(context.pos, 2)

    def test_load_appends_missing_eof(self):
        context = ParserContext()
        context.load([Token(TokenType.LITERAL, "7")])
        self.assertEqual(context.tokens[-1].type, TokenType.EOF)
        stmts = parse_statements(context, [Token(TokenType.LITERAL, "7")])
        self.assertEqual(stmts, [ExprStmt(expr=Literal(text="7"))])

    def test_multiple_statements(self):
        stmts = parse_("1 2")
        self.assertEqual(stmts, [ExprStmt(expr=Literal(text="1")), ExprStmt(expr=Literal(text="2"))])


# ═══════════════════════════════════════════════════════════════════════════════
# Rounding / Estimation Tests
# ═══════════════════════════════════════════════════════════════════════════════

class TestRounding(unittest.TestCase):

    def test_integers_are_left_alone(self):
        for x in (24.0, -24.0, 0.0, 1e6):
            self.assertIsNone(estimate_(x), x)

    def test_half(self):
        self.assertEqual(estimate_(0.5), "1/2")
        self.assertEqual(estimate_(-0.5), "-1/2")
        self.assertEqual(estimate_(0.5000001), "1/2")

    def test_thirds(self):
        self.assertEqual(estimate_(0.3333333333), "1/3")
        self.assertEqual(estimate_(-0.666666666), "-2/3")

    def test_mixed_thirds(self):
        self.assertEqual(estimate_(1.3333333), "1 + 1/3")
        self.assertEqual(estimate_(2.6666666), "2 + 2/3")
        self.assertEqual(estimate_(-1.3333333), "-1 - 1/3")
        self.assertEqual(estimate_(100.33333333), "100 + 1/3")
        self.assertEqual(estimate_(-1.666666666), "-1 - 2/3")

    def test_constants(self):
        self.assertEqual(estimate_(math.pi), "π")
        self.assertEqual(estimate_(-math.pi), "-π")
        self.assertEqual(estimate_(2 * math.pi / 3), "2π/3")
        self.assertEqual(estimate_(math.pi / 2), "π/2")
        self.assertEqual(estimate_(math.e), "e")
        self.assertEqual(estimate_(math.sqrt(2)), "√2")

    def test_radicals(self):
        self.assertEqual(estimate_(math.sqrt(6)), "√6")
        self.assertEqual(estimate_(math.sqrt(8)), "√8")

    def test_negative_radical_keeps_sign(self):
        self.assertEqual(estimate_(-math.sqrt(5)), "-√5")
        self.assertEqual(estimate_(-math.sqrt(7)), "-√7")
        self.assertEqual(estimate(Number.of(0.0, -math.sqrt(3) * 2), IMAGINARY), "-√12")

    def test_small_fractions_are_not_thirds(self):
        self.assertIsNone(estimate_(0.0000333333))
        self.assertIsNone(estimate_(0.0000666666))
        self.assertIsNone(estimate_(1 / 30000))
        self.assertIsNone(estimate_(-2 / 30000))

    def test_small_fraction_with_integer_part(self):
        self.assertNotEqual(estimate_(5.0000333333), "5 + 1/3")
        self.assertEqual(estimate_(5.0000333333), "5")

    def test_noise_near_integers(self):
        self.assertEqual(estimate_(0.99999999), "1")
        self.assertEqual(estimate_(-0.9999999), "-1")
        self.assertEqual(estimate_(1.99999999), "2")
        self.assertEqual(estimate_(-1.99999999), "-2")
        self.assertEqual(estimate_(1.000000001), "1")
        self.assertEqual(estimate_(9.9999999), "10")
        self.assertEqual(estimate_(-9.9999999), "-10")

    def test_noise_near_zero(self):
        self.assertEqual(estimate_(0.0000000001), "0")
        self.assertEqual(estimate_(-0.000000001), "0")

    def test_no_estimate(self):
        for x in (0.9932611, -0.9932611, 1.9932611, 1.23456, -1.23456, 1.98,
                  1.9999, 0.0001, 0.333, 1.333, 0.00003, -0.00001, 0.3):
            self.assertIsNone(estimate_(x), x)

    def test_imaginary_component(self):
        number = Number.of(2.0, 0.5)
        self.assertEqual(estimate(number, IMAGINARY), "1/2")
        self.assertIsNone(estimate(number, REAL))

    def test_non_finite(self):
        self.assertIsNone(estimate_(math.inf))
        self.assertIsNone(round_value(Number.of(math.nan), REAL))

    def test_estimates_are_clean(self):
        for x in (0.5, 1 / 3, 2 / 3, 4 / 3, -5 / 3, math.pi, math.sqrt(3), math.sqrt(5),
                  0.99999999, -0.000000001, 3 * math.pi / 4):
            result = estimate_(x)
            self.assertTrue(result, x)
            self.assertNotIn("?", result)

    def test_round_below_one(self):
        rounded = round_value(Number.of(0.999999999), REAL)
        self.assertIsNotNone(rounded)
        self.assertEqual(rounded.real, 1.0)

    def test_round_above_one(self):
        rounded = round_value(Number.of(1.00000001), REAL)
        self.assertEqual(rounded.real, 1.0)

    def test_round_negative(self):
        rounded = round_value(Number.of(-2.9999999), REAL)
        self.assertEqual(rounded.real, -3.0)

    def test_round_declines(self):
        self.assertIsNone(round_value(Number.of(0.3), REAL))
        self.assertIsNone(round_value(Number.of(1.9999), REAL))

    def test_round_keeps_other_component_and_unit(self):
        number = Number.of(0.25, 4.0000000001, unit="deg")
        rounded = round_value(number, IMAGINARY)
        self.assertEqual(rounded.imaginary, 4.0)
        self.assertEqual(rounded.real, 0.25)
        self.assertEqual(rounded.unit, "deg")

    def test_round_if_needed(self):
        number = Number.of(0.999999999, 2.00000000001).round_if_needed()
        self.assertEqual(number.values(), (1.0, 2.0))
        untouched = Number.of(0.3)
        self.assertIs(untouched.round_if_needed(), untouched)

    def test_trim_zeroes(self):
        self.assertEqual(trim_zeroes("1.200"), "1.2")
        self.assertEqual(trim_zeroes("1.000"), "1")
        self.assertEqual(trim_zeroes("5"), "5")
        self.assertEqual(trim_zeroes("500"), "500")
        self.assertEqual(trim_zeroes("0.0"), "0")

    def test_decimal_backend_estimates(self):
        backend = DecimalBackend()
        with backend.scope():
            third = Decimal(1) / Decimal(3)
            half = Decimal(1) / Decimal(2)
        self.assertEqual(estimate(Number.of(third, backend=backend), REAL), "1/3")
        self.assertEqual(estimate(Number.of(half, backend=backend), REAL), "1/2")
        self.assertIsNone(estimate(Number.of(Decimal(7), backend=backend), REAL))


# ═══════════════════════════════════════════════════════════════════════════════
# Backend Tests
# ═══════════════════════════════════════════════════════════════════════════════

class TestBackends(unittest.TestCase):

    def test_get_backend(self):
        self.assertIsInstance(get_backend("float"), FloatBackend)
        self.assertIsInstance(get_backend("decimal"), DecimalBackend)
        self.assertEqual(get_backend("decimal", 30).precision, 30)

    def test_unknown_backend(self):
        with self.assertRaises(ValueError):
            get_backend("quantum")

    def test_invalid_precision(self):
        with self.assertRaises(ValueError):
            DecimalBackend(0)

    def test_render(self):
        b = FloatBackend()
        self.assertEqual(b.render(0.1 + 0.2), "0.3")
        self.assertEqual(b.render(1 / 3), "0.3333333333")
        self.assertEqual(b.render(1e-10), "0.0000000001")
        self.assertEqual(b.render(2.5), "2.5")
        self.assertEqual(b.render(123456789012345.0), "123456789012345")
        self.assertEqual(b.render(-0.0), "-0")

    def test_decomposition(self):
        b = FloatBackend()
        self.assertEqual(b.trunc(-1.5), -1.0)
        self.assertEqual(b.fract(-1.5), -0.5)
        self.assertEqual(b.floor(-1.5), -2.0)
        self.assertEqual(b.ceil(-1.5), -1.0)
        self.assertTrue(b.is_integer(4.0))
        self.assertFalse(b.is_integer(4.5))
        self.assertFalse(b.is_integer(math.inf))

    def test_log10_of_zero(self):
        self.assertEqual(FloatBackend().log10(0.0), -math.inf)
        self.assertTrue(DecimalBackend().log10(Decimal(0)).is_infinite())

    def test_decimal_pi(self):
        b = DecimalBackend(40)
        self.assertTrue(str(b.pi()).startswith("3.14159265358979323846264338327950288"))

    def test_decimal_trig(self):
        b = DecimalBackend(40)
        with b.scope():
            self.assertLess(abs(b.sin(b.pi() / 2) - 1), Decimal("1e-35"))
            self.assertLess(abs(b.cos(b.pi()) + 1), Decimal("1e-35"))
            self.assertLess(abs(b.sin(b.pi() * 1001)), Decimal("1e-30"))

    def test_decimal_decomposition(self):
        b = DecimalBackend()
        self.assertEqual(b.trunc(Decimal("-1.5")), Decimal(-1))
        self.assertEqual(b.floor(Decimal("-1.5")), Decimal(-2))
        self.assertEqual(b.ceil(Decimal("1.2")), Decimal(2))
        self.assertEqual(b.render(Decimal("2.50")), "2.5")
        self.assertEqual(b.render(Decimal("3E+2")), "300")


# ═══════════════════════════════════════════════════════════════════════════════
# Interpreter Tests (through parse())
# ═══════════════════════════════════════════════════════════════════════════════

class TestInterpreter(unittest.TestCase):

    def setUp(self):
        self.context = ParserContext()

    def eval_(self, source, angle_unit=AngleUnit.RADIANS):
        return parse(self.context, source, angle_unit)

    def test_arithmetic(self):
        self.assertEqual(self.eval_("1 + 2 * 3").real, 7.0)
        self.assertEqual(self.eval_("(1 + 2) * 3").real, 9.0)
        self.assertEqual(self.eval_("2^3^2").real, 512.0)
        self.assertEqual(self.eval_("-2^2").real, -4.0)
        self.assertEqual(self.eval_("2^-1").real, 0.5)
        self.assertEqual(self.eval_("7 / 2").real, 3.5)

    def test_function_declared_then_called(self):
        self.assertIsNone(self.eval_("f(x) = x^2"))
        self.assertEqual(self.eval_("f(4)").real, 16.0)

    def test_call_before_declaration_is_evaluation_error(self):
        with self.assertRaises(EvaluationError):
            self.eval_("f(4)")

    def test_absolute_value(self):
        self.assertEqual(self.eval_("|-5|").real, 5.0)
        self.assertEqual(self.eval_("|3 - 4i|").real, 5.0)

    def test_variables_persist(self):
        self.assertEqual(self.eval_("a = 2").real, 2.0)
        self.assertEqual(self.eval_("3a").real, 6.0)
        self.assertEqual(self.eval_("a^3").real, 8.0)

    def test_variable_redefinition_uses_previous_value(self):
        self.eval_("n = 5")
        self.eval_("n = n + 1")
        self.assertEqual(self.eval_("n").real, 6.0)

    def test_multi_parameter_function(self):
        self.eval_("h(x, y) = x^2 + y^2")
        self.assertEqual(self.eval_("h(3, 4)").real, 25.0)

    def test_function_parameters_shadow_variables(self):
        self.eval_("x = 100")
        self.eval_("k(x) = x + 1")
        self.assertEqual(self.eval_("k(1)").real, 2.0)
        self.assertEqual(self.eval_("x").real, 100.0)

    def test_juxtaposed_call(self):
        self.assertEqual(self.eval_("sqrt16").real, 4.0)
        self.assertEqual(self.eval_("√16").real, 4.0)

    def test_builtins(self):
        self.assertAlmostEqual(self.eval_("cos(pi)").real, -1.0)
        self.assertAlmostEqual(self.eval_("log(100)").real, 2.0)
        self.assertAlmostEqual(self.eval_("log(8, 2)").real, 3.0)
        self.assertAlmostEqual(self.eval_("ln(e)").real, 1.0)
        self.assertEqual(self.eval_("max(1, 5, 3)").real, 5.0)
        self.assertEqual(self.eval_("min(4, -2)").real, -2.0)
        self.assertEqual(self.eval_("floor(-1.5)").real, -2.0)
        self.assertEqual(self.eval_("round(2.5)").real, 3.0)
        self.assertAlmostEqual(self.eval_("cbrt(-27)").real, -3.0)

    def test_angle_units(self):
        self.assertAlmostEqual(self.eval_("sin(90)", AngleUnit.DEGREES).real, 1.0)
        self.assertAlmostEqual(self.eval_("sin(90deg)").real, 1.0)
        self.assertAlmostEqual(self.eval_("asin(1)", AngleUnit.DEGREES).real, 90.0)
        self.assertAlmostEqual(self.eval_("cos(pi rad)", AngleUnit.DEGREES).real, -1.0)

    def test_unit_tag(self):
        self.assertEqual(self.eval_("90deg").unit, "deg")
        self.assertEqual(self.eval_("90").unit, "")

    def test_complex(self):
        root = self.eval_("sqrt(-4)")
        self.assertEqual((root.real, root.imaginary), (0.0, 2.0))
        square = self.eval_("i^2")
        self.assertEqual(square.real, -1.0)
        self.assertEqual(square.imaginary, 0.0)
        product = self.eval_("(1 + 2i) * (3 - i)")
        self.assertEqual((product.real, product.imaginary), (5.0, 5.0))
        quotient = self.eval_("(5 + 5i) / (3 - i)")
        self.assertAlmostEqual(quotient.real, 1.0)
        self.assertAlmostEqual(quotient.imaginary, 2.0)

    def test_undefined_variable(self):
        with self.assertRaises(EvaluationError):
            self.eval_("nothing + 1")

    def test_division_by_zero(self):
        with self.assertRaises(EvaluationError):
            self.eval_("1 / 0")

    def test_wrong_arity(self):
        self.eval_("g(x) = x")
        with self.assertRaises(EvaluationError):
            self.eval_("g(1, 2)")
        with self.assertRaises(EvaluationError):
            self.eval_("sqrt(1, 2)")

    def test_domain_error(self):
        with self.assertRaises(EvaluationError):
            self.eval_("asin(2)")
        with self.assertRaises(EvaluationError):
            self.eval_("ln(0)")

    def test_runaway_recursion(self):
        self.eval_("r(x) = r(x)")
        with self.assertRaises(EvaluationError):
            self.eval_("r(1)")

    def test_parse_errors_are_not_evaluation_errors(self):
        with self.assertRaises(ParseError):
            self.eval_("(1")

    def test_decimal_backend(self):
        context = ParserContext(backend=DecimalBackend(50))
        result = parse(context, "1/3")
        self.assertIsInstance(result.real, Decimal)
        self.assertEqual(str(result.real), "0." + "3" * 50)
        self.assertAlmostEqual(float(parse(context, "sin(pi/6)").real), 0.5)


# ═══════════════════════════════════════════════════════════════════════════════
# Calculator / Display Tests
# ═══════════════════════════════════════════════════════════════════════════════

class TestCalculator(unittest.TestCase):

    def setUp(self):
        self.calc = Calculator()

    def display(self, source):
        return self.calc.evaluate(source).display

    def test_exact_results(self):
        self.assertEqual(self.display("4"), "4")
        self.assertEqual(self.display("2 + 3 * 4"), "14")
        self.assertEqual(self.display("0.1 + 0.2"), "0.3")

    def test_estimated_results(self):
        self.assertEqual(self.display("1/3"), "0.3333333333 ≈ 1/3")
        self.assertEqual(self.display("0.5"), "0.5 ≈ 1/2")
        self.assertEqual(self.display("sqrt(8)"), "2.828427125 ≈ √8")
        self.assertEqual(self.display("asin(1)"), "1.570796327 ≈ π/2")

    def test_complex_display(self):
        self.assertEqual(self.display("sqrt(-1)"), "i")
        self.assertEqual(self.display("2 + 3i"), "2 + 3i")
        self.assertEqual(self.display("1 - 2i"), "1 - 2i")
        self.assertEqual(self.display("-i"), "-i")

    def test_unit_display(self):
        self.assertEqual(self.display("90deg"), "90 deg")

    def test_declaration_has_no_display(self):
        result = self.calc.evaluate("f(x) = x^2")
        self.assertIsNone(result.value)
        self.assertEqual(result.display, "")
        self.assertEqual(self.display("f(4)"), "16")

    def test_degrees(self):
        calc = Calculator(angle_unit=AngleUnit.DEGREES)
        self.assertEqual(calc.evaluate("sin(30)").display, "0.5 ≈ 1/2")

    def test_decimal_backend(self):
        calc = Calculator(backend="decimal", precision=30)
        self.assertEqual(calc.evaluate("2/3").display, "0.6666666667 ≈ 2/3")

    def test_errors_are_wrapped(self):
        for source in ("1 $ 2", "(1", "f(1) = 2", "1/0", "unknown(3)"):
            with self.assertRaises(CalculationError, msg=source):
                self.calc.evaluate(source)

    def test_error_cause_is_kept(self):
        with self.assertRaises(CalculationError) as cm:
            self.calc.evaluate("f(1) = 2")
        self.assertIsInstance(cm.exception.__cause__, InvalidParameterListError)

    def test_deep_nesting_is_wrapped(self):
        with self.assertRaises(CalculationError) as cm:
            self.calc.evaluate("(" * 1200 + "1" + ")" * 1200)
        self.assertIsInstance(cm.exception.__cause__, ParseError)
        with self.assertRaises(CalculationError):
            self.calc.emit_ast("|" * 1200 + "1" + "|" * 1200)

    def test_small_results_have_no_third_estimate(self):
        self.assertEqual(self.display("1/30000"), "0.00003333333333")
        self.assertEqual(self.display("2/30000"), "0.00006666666667")
        self.assertNotIn("1/3", self.display("5 + 1/30000"))
        decimal_calc = Calculator(backend="decimal")
        self.assertNotIn("≈", decimal_calc.evaluate("1/30000").display)

    def test_session_shared_with_parse(self):
        self.calc.evaluate("f(x) = x + 1")
        self.assertEqual(parse(self.calc.context, "f(1)").real, 2.0)
        parse(self.calc.context, "w = 10")
        self.assertEqual(self.display("f(w)"), "11")

    def test_negative_radical_display(self):
        self.assertEqual(self.display("-sqrt(5)"), "-2.236067977 ≈ -√5")

    def test_calculate_one_shot(self):
        self.assertEqual(calculate("1/3"), "0.3333333333 ≈ 1/3")
        self.assertEqual(calculate("cos(60)", AngleUnit.DEGREES), "0.5 ≈ 1/2")
        self.assertEqual(calculate("2/3", backend="decimal"), "0.6666666667 ≈ 2/3")
        # each call is a fresh session
        calculate("q = 4")
        with self.assertRaises(CalculationError):
            calculate("q")

    def test_emit_ast(self):
        parsed = json.loads(self.calc.emit_ast("3y"))
        self.assertEqual(parsed[0]["_type"], "ExprStmt")
        self.assertEqual(parsed[0]["expr"]["op"], "STAR")

    def test_debug_output(self):
        calc = Calculator(debug=True)
        err = io.StringIO()
        with redirect_stderr(err):
            calc.evaluate("1 + 1")
        self.assertIn("[kalc] Phase 1", err.getvalue())
        self.assertIn("[kalc] Phase 3", err.getvalue())

    def test_format_number(self):
        self.assertEqual(format_number(Number.of(0.0, -1.0)), "-i")
        self.assertEqual(format_number(Number.of(1.5, 0.5)), "1.5 + 0.5i ≈ 1.5 + 1/2i")
        self.assertEqual(format_number(Number.of(0.0, -4 / 3)), "-1.333333333i ≈ (-1 - 1/3)i")


# ═══════════════════════════════════════════════════════════════════════════════
# CLI Tests
# ═══════════════════════════════════════════════════════════════════════════════

class TestCli(unittest.TestCase):

    def test_expressions_share_a_session(self):
        out = run_cli("f(x) = x^2", "f(4)", "1/3")
        self.assertEqual(out.splitlines(), ["16", "0.3333333333 ≈ 1/3"])

    def test_degrees_flag(self):
        self.assertEqual(run_cli("--degrees", "cos(60)").strip(), "0.5 ≈ 1/2")

    def test_decimal_flag(self):
        out = run_cli("--backend", "decimal", "--precision", "30", "2/3")
        self.assertEqual(out.strip(), "0.6666666667 ≈ 2/3")

    def test_file_input(self):
        with tempfile.NamedTemporaryFile("w", suffix=".txt", delete=False, encoding="utf-8") as f:
            f.write("a = 3\n\nb(x) = a x\nb(2)\n")
            path = f.name
        try:
            self.assertEqual(run_cli("-f", path).splitlines(), ["3", "6"])
        finally:
            os.unlink(path)

    def test_emit_ast_flag(self):
        parsed = json.loads(run_cli("--emit-ast", "|x|"))
        self.assertEqual(parsed[0]["expr"]["name"], "abs")

    def test_error_exit_code(self):
        err = io.StringIO()
        with redirect_stderr(err), self.assertRaises(SystemExit) as cm:
            run_cli("(1")
        self.assertEqual(cm.exception.code, 1)
        self.assertIn("ParseError", err.getvalue())

    def test_missing_file(self):
        err = io.StringIO()
        with redirect_stderr(err), self.assertRaises(SystemExit) as cm:
            run_cli("-f", "/nonexistent/kalc-input.txt")
        self.assertEqual(cm.exception.code, 1)


if __name__ == "__main__":
    unittest.main(verbosity=2)
