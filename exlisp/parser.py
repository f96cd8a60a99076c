import re

from .errors import (
    MissingClosingParenthesis,
    NumberTooLarge,
    TrailingTokens,
    UnexpectedEndOfInput,
)
from .types import RESERVED_SYMBOLS, Symbol


INTEGER_RE = re.compile(r'^-?\d+$')
FLOAT_RE = re.compile(r'^-?\d+\.\d+$')


def tokenize(source):
    """Split source into parens and whitespace-separated words."""
    source = source.replace('(', ' ( ').replace(')', ' ) ')
    return [token for token in source.split() if token]


def parse_token(token):
    """Turn a single non-paren token into a literal, a Symbol or an identifier.

    The order of checks matters: reserved words win over identifiers, so
    a variable can never be called ``+`` or ``list``.

    """
    if INTEGER_RE.match(token):
        try:
            return int(token)
        except ValueError:
            raise NumberTooLarge(token)
    if FLOAT_RE.match(token):
        return float(token)
    if token == 'true':
        return True
    if token == 'false':
        return False
    if token in RESERVED_SYMBOLS:
        return Symbol(token)
    return token  # Identifier


def parse_expr(tokens):
    """Parse a single expression. Return it and remaining tokens."""
    if not tokens or tokens[0] == ')':
        raise UnexpectedEndOfInput()
    if tokens[0] == '(':
        expr, tokens = parse_body(tokens[1:])
        if not tokens:
            raise MissingClosingParenthesis()
        return expr, tokens[1:]
    return parse_token(tokens[0]), tokens[1:]


def parse_body(tokens):
    """Parse expressions up to a closing paren. Return them and remaining tokens."""
    body = []
    while tokens and tokens[0] != ')':
        expr, tokens = parse_expr(tokens)
        body.append(expr)
    return body, tokens


def parse(source):
    """Parse source holding exactly one expression."""
    expr, remaining_tokens = parse_expr(tokenize(source))
    if remaining_tokens:
        raise TrailingTokens(remaining_tokens)
    return expr


def parse_many(source):
    """Return a list of all top-level expressions in source."""
    tokens = tokenize(source)
    expressions = []
    while tokens:
        expr, tokens = parse_expr(tokens)
        expressions.append(expr)
    return expressions
