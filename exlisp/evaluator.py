import operator
from functools import reduce

from .errors import (
    ArityError,
    DivisionByZero,
    EmptyListError,
    InvalidForm,
    LispTypeError,
    NotAFunction,
    UndefinedFunction,
    UndefinedVariable,
    UnrecognizedExpression,
)
from .printer import to_string
from .types import (
    ARITHMETIC,
    COMPARISON,
    LIST_OPS,
    LOGICAL,
    Expression,
    Procedure,
    Symbol,
    extend,
    is_identifier,
    is_number,
    is_truthy,
)


def evaluate(expr, env=None):
    """Evaluate a single expression.

    Return a ``(value, env)`` pair where ``env`` is the environment as left
    by the evaluation: a new mapping if something was defined, otherwise
    the one passed in. The given environment is never modified.

    """
    if env is None:
        env = {}
    if isinstance(expr, (bool, int, float)):
        return expr, env
    if isinstance(expr, Symbol):
        return lookup(expr.value, env), env
    if is_identifier(expr):
        return lookup(expr, env), env
    if isinstance(expr, Expression) and expr:
        head, *args = expr
        if isinstance(head, Symbol):
            form = FORMS.get(head)
            if form is not None:
                return form(head, args, env)
        elif is_identifier(head) or isinstance(head, Expression):
            return eval_application(head, args, env)
    raise UnrecognizedExpression('Unrecognized expression: %s' % to_string(expr))


def lookup(name, env):
    if name not in env:
        raise UndefinedVariable(name)
    return env[name]


def eval_args(args, env):
    """Evaluate args left to right, each one in the environment left by the previous one."""
    values = []
    for arg in args:
        value, env = evaluate(arg, env)
        values.append(value)
    return values, env


# Special forms:

def eval_if(_, args, env):
    if len(args) not in (2, 3):
        raise InvalidForm("Invalid 'if' form, expected 2-3 arguments, got: %d" % len(args))
    condition, then_expr, *else_expr = args
    condition_value, env = evaluate(condition, env)
    if is_truthy(condition_value):
        return evaluate(then_expr, env)
    if else_expr:
        return evaluate(else_expr[0], env)
    return None, env


def eval_define(_, args, env):
    """Handle both ``(define name expr)`` and ``(define (name params...) body)``."""
    if len(args) != 2:
        raise InvalidForm("Invalid 'define' form, expected 2 arguments, got: %d" % len(args))
    target, body = args
    if is_identifier(target):
        value, env = evaluate(body, env)
        return target, extend(env, {target: value})
    if isinstance(target, Expression) and target and is_identifier(target[0]):
        name, *params = target
        procedure = Procedure(check_params(params), body, env, name)
        return name, extend(env, {name: procedure})
    raise InvalidForm('Cannot define %s' % to_string(target))


def eval_lambda(_, args, env):
    if len(args) != 2 or not isinstance(args[0], Expression):
        raise InvalidForm("Invalid 'lambda' form, expected a parameter list and a body")
    params, body = args
    return Procedure(check_params(params), body, env), env


def check_params(params):
    for param in params:
        if not is_identifier(param):
            raise InvalidForm('Bad parameter name: %s' % to_string(param))
    return tuple(params)


# Procedure application:

def eval_application(head, args, env):
    """Call a user procedure. The caller's environment is returned as is."""
    if is_identifier(head):
        if head not in env:
            raise UndefinedFunction(head)
        procedure, call_env = env[head], env
        if not isinstance(procedure, Procedure):
            raise NotAFunction(head)
    else:
        procedure, call_env = evaluate(head, env)
        if not isinstance(procedure, Procedure):
            raise NotAFunction(to_string(head))
    values, _ = eval_args(args, call_env)
    return apply_procedure(procedure, values), env


def apply_procedure(procedure, values):
    """Run procedure body in its defining environment extended with the arguments."""
    if len(values) != len(procedure.params):
        raise ArityError(len(procedure.params), len(values))
    bindings = {}
    if procedure.name is not None:
        bindings[procedure.name] = procedure
    bindings.update(zip(procedure.params, values))
    value, _ = evaluate(procedure.body, extend(procedure.env, bindings))
    return value


# Arithmetic:

def eval_arithmetic(op, args, env):
    values, env = eval_args(args, env)
    check_numbers(op, values)
    try:
        return ARITHMETIC_FUNCTIONS[op](values), env
    except OverflowError:
        raise LispTypeError('%s: result too large for a float' % op)


def check_numbers(op, values):
    if not all(is_number(value) for value in values):
        raise LispTypeError('All arguments to %s must be numbers' % op)


def binary_operands(op, values):
    if len(values) != 2:
        raise ArityError(2, len(values), '%s requires exactly 2 arguments' % op)
    return values


def add(values):
    return sum(values)


def sub(values):
    if not values:
        raise ArityError('at least 1', 0, '- requires at least 1 argument')
    if len(values) == 1:
        return -values[0]
    return reduce(operator.sub, values)


def mul(values):
    return reduce(operator.mul, values, 1)


def div(values):
    if len(values) < 2:
        raise ArityError('at least 2', len(values), '/ requires at least 2 arguments')
    if any(value == 0 for value in values[1:]):
        raise DivisionByZero()
    return reduce(operator.truediv, values)


def mod(values):
    """Floored modulo: the result takes the sign of the divisor."""
    x, y = binary_operands(Symbol.MOD, values)
    if y == 0:
        raise DivisionByZero()
    return x % y


def rem(values):
    """Truncated remainder: the result takes the sign of the dividend."""
    x, y = binary_operands(Symbol.REM, values)
    if y == 0:
        raise DivisionByZero()
    result = abs(x) % abs(y)
    return -result if x < 0 else result


ARITHMETIC_FUNCTIONS = {
    Symbol.ADD: add,
    Symbol.SUB: sub,
    Symbol.MUL: mul,
    Symbol.DIV: div,
    Symbol.MOD: mod,
    Symbol.REM: rem,
}


# Comparison:

COMPARISON_FUNCTIONS = {
    Symbol.LT: operator.lt,
    Symbol.GT: operator.gt,
    Symbol.LE: operator.le,
    Symbol.GE: operator.ge,
}


def eval_comparison(op, args, env):
    values, env = eval_args(args, env)
    check_numbers(op, values)
    if len(values) < 2:
        raise ArityError('at least 2', len(values), '%s requires at least 2 arguments' % op)
    if op is Symbol.EQ:
        first = values[0]
        return all(value == first for value in values[1:]), env
    compare = COMPARISON_FUNCTIONS[op]
    return all(compare(a, b) for a, b in zip(values, values[1:])), env


# Logical operations short-circuit, so arguments are evaluated one by one:

def eval_logical(op, args, env):
    if op is Symbol.AND:
        return eval_and(args, env)
    if op is Symbol.OR:
        return eval_or(args, env)
    if len(args) != 1:
        raise ArityError(1, len(args), 'not requires exactly 1 argument')
    value, env = evaluate(args[0], env)
    return not is_truthy(value), env


def eval_and(args, env):
    value = True
    for arg in args:
        value, env = evaluate(arg, env)
        if not is_truthy(value):
            break
    return value, env


def eval_or(args, env):
    value = False
    for arg in args:
        value, env = evaluate(arg, env)
        if is_truthy(value):
            break
    return value, env


# Lists:

def eval_list_op(op, args, env):
    if op is Symbol.LIST:
        return eval_args(args, env)

    expected = 2 if op is Symbol.CONS else 1
    if len(args) != expected:
        raise ArityError(expected, len(args), '%s requires exactly %d argument%s' % (
            op, expected, 's' if expected > 1 else ''))
    values, env = eval_args(args, env)

    if op is Symbol.CONS:
        head, tail = values
        if not isinstance(tail, list):
            raise LispTypeError('cons: second argument must be a list')
        return [head, *tail], env

    value = values[0]
    if not isinstance(value, list):
        raise LispTypeError('%s requires a list argument' % op)
    if not value:
        raise EmptyListError('%s: cannot take %s of empty list' % (op, op))
    if op is Symbol.CAR:
        return value[0], env
    return value[1:], env


FORMS = {
    Symbol.IF: eval_if,
    Symbol.DEFINE: eval_define,
    Symbol.LAMBDA: eval_lambda,
}
FORMS.update(dict.fromkeys(ARITHMETIC, eval_arithmetic))
FORMS.update(dict.fromkeys(COMPARISON, eval_comparison))
FORMS.update(dict.fromkeys(LOGICAL, eval_logical))
FORMS.update(dict.fromkeys(LIST_OPS, eval_list_op))
