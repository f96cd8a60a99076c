"""ExLisp: a small Lisp interpreter.

>>> from exlisp import evaluate, parse
>>> env = {'x': 10}
>>> evaluate(parse('(+ x 5)'), env)
(15, {'x': 10})

"""
from .errors import (
    ArityError,
    DivisionByZero,
    EmptyListError,
    EvalError,
    InvalidForm,
    LispError,
    LispTypeError,
    MissingClosingParenthesis,
    NotAFunction,
    NumberTooLarge,
    ParseError,
    TrailingTokens,
    UndefinedFunction,
    UndefinedVariable,
    UnexpectedEndOfInput,
    UnrecognizedExpression,
)
from .evaluator import evaluate
from .parser import parse, parse_many, parse_token, tokenize
from .printer import to_string
from .types import Procedure, Symbol

__version__ = '0.1.0'

__all__ = [
    'ArityError',
    'DivisionByZero',
    'EmptyListError',
    'EvalError',
    'InvalidForm',
    'LispError',
    'LispTypeError',
    'MissingClosingParenthesis',
    'NotAFunction',
    'NumberTooLarge',
    'ParseError',
    'Procedure',
    'Symbol',
    'TrailingTokens',
    'UndefinedFunction',
    'UndefinedVariable',
    'UnexpectedEndOfInput',
    'UnrecognizedExpression',
    'evaluate',
    'parse',
    'parse_many',
    'parse_token',
    'to_string',
    'tokenize',
]
