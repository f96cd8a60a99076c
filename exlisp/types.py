"""Expression and value types shared by the parser and the evaluator.

Expressions:
    - ``int``, ``float``, ``bool`` literals,
    - ``Symbol`` for the reserved words of the language,
    - ``Identifier`` (a plain ``str``) for variable and function names,
    - ``Expression`` (a plain ``list``) for compound forms.

Values are ``int``, ``float``, ``bool``, ``None`` (nil), lists of values
and ``Procedure`` instances.

"""
import enum
from dataclasses import dataclass, field
from typing import Optional


Identifier, Expression = str, list


class Symbol(enum.Enum):
    """Reserved words. ``Symbol('+')`` looks a symbol up by its text."""

    # Arithmetic
    ADD = '+'
    SUB = '-'
    MUL = '*'
    DIV = '/'
    MOD = 'mod'
    REM = 'rem'

    # Comparison
    EQ = '='
    LT = '<'
    GT = '>'
    LE = '<='
    GE = '>='

    # Logical
    AND = 'and'
    OR = 'or'
    NOT = 'not'

    # Special forms
    IF = 'if'
    COND = 'cond'
    DEFINE = 'define'
    LAMBDA = 'lambda'
    LET = 'let'
    QUOTE = 'quote'

    # Lists
    CAR = 'car'
    CDR = 'cdr'
    CONS = 'cons'
    LIST = 'list'

    def __str__(self):
        return self.value


RESERVED_SYMBOLS = frozenset(symbol.value for symbol in Symbol)

ARITHMETIC = frozenset([Symbol.ADD, Symbol.SUB, Symbol.MUL, Symbol.DIV, Symbol.MOD, Symbol.REM])
COMPARISON = frozenset([Symbol.EQ, Symbol.LT, Symbol.GT, Symbol.LE, Symbol.GE])
LOGICAL = frozenset([Symbol.AND, Symbol.OR, Symbol.NOT])
LIST_OPS = frozenset([Symbol.CAR, Symbol.CDR, Symbol.CONS, Symbol.LIST])


@dataclass(frozen=True, eq=False)
class Procedure:
    """A closure: parameters and body plus the environment it was defined in.

    ``name`` is set for functions created by ``(define (name ...) ...)``.
    The captured ``env`` never contains the procedure itself; the name is
    bound in the call frame on every application instead.

    """
    params: tuple
    body: object
    env: dict = field(repr=False)
    name: Optional[str] = None


def extend(env, bindings):
    """Return a new environment: ``env`` updated with ``bindings``.

    Environments are never changed in place, so every holder of an older
    mapping keeps seeing exactly what it saw before.

    """
    new_env = dict(env)
    new_env.update(bindings)
    return new_env


def is_truthy(value):
    return value is not False and value is not None


def is_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_identifier(expr):
    return isinstance(expr, Identifier)
