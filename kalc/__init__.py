"""
kalc - calculator language core: parser, interpreter and result estimation.
"""

from .lexer import tokenize, Token, TokenType, LexerError
from .parser import (
    parse, parse_statements, evaluate_statements, Parser, ParserContext,
    ParseError, UnexpectedTokenError, InvalidParameterListError,
)
from .interpreter import Interpreter, AngleUnit, EvaluationError
from .rounding import estimate, round_value, trim_zeroes, ComplexNumberType
from .value import Number, format_number
from .backends import get_backend, FloatBackend, DecimalBackend
from .calculator import Calculator, CalculationError, calculate

__version__ = "0.1.0"
