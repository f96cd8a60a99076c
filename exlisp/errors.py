"""Exceptions raised by the parser and the evaluator."""


class LispError(Exception):
    """Base class of every error the interpreter raises."""


# Parse errors:

class ParseError(LispError):
    pass


class UnexpectedEndOfInput(ParseError):
    def __init__(self):
        super().__init__('Unexpected end of input')


class MissingClosingParenthesis(ParseError):
    def __init__(self):
        super().__init__('Missing closing parenthesis')


class NumberTooLarge(ParseError):
    def __init__(self, token):
        self.token = token
        super().__init__('Integer literal too large: %d digits' % len(token.lstrip('-')))


class TrailingTokens(ParseError):
    def __init__(self, leftover):
        self.leftover = list(leftover)
        super().__init__('Bad trailing tokens: %s' % ' '.join(self.leftover))


# Evaluation errors:

class EvalError(LispError):
    pass


class UndefinedVariable(EvalError):
    def __init__(self, name):
        self.name = name
        super().__init__('Undefined variable: %s' % name)


class UndefinedFunction(EvalError):
    def __init__(self, name):
        self.name = name
        super().__init__('Undefined function: %s' % name)


class NotAFunction(EvalError):
    def __init__(self, name):
        self.name = name
        super().__init__('Not a function: %s' % name)


class InvalidForm(EvalError):
    pass


class LispTypeError(EvalError):
    pass


class ArityError(EvalError):
    def __init__(self, expected, got, message=None):
        self.expected = expected
        self.got = got
        super().__init__(message or 'Expected %s arguments, got %s' % (expected, got))


class DivisionByZero(EvalError):
    def __init__(self):
        super().__init__('Division by zero')


class EmptyListError(EvalError):
    pass


class UnrecognizedExpression(EvalError):
    pass
