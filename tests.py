import sys

import pytest

from exlisp import (
    ArityError,
    DivisionByZero,
    EmptyListError,
    InvalidForm,
    LispTypeError,
    MissingClosingParenthesis,
    NotAFunction,
    NumberTooLarge,
    Procedure,
    Symbol,
    TrailingTokens,
    UndefinedFunction,
    UndefinedVariable,
    UnexpectedEndOfInput,
    UnrecognizedExpression,
    evaluate,
    parse,
    parse_many,
    parse_token,
    to_string,
    tokenize,
)
from exlisp.__main__ import main
from exlisp.repl import MAX_HISTORY, Repl, default_history_path


def e(source, env=None):
    """Shortcut for evaluating a sequence of expressions in tests."""
    value = None
    env = env or {}
    for expr in parse_many(source):
        value, env = evaluate(expr, env)
    return value


def p(source):
    """Shortcut for parsing and evaluating a single expression in tests."""
    return evaluate(parse(source))


FACTORIAL = """
    (define (factorial n)
      (if (= n 0)
          1
          (* n (factorial (- n 1)))))
"""

# 10 ** 400: an exact integer too large to become a float
HUGE = "(* " + " ".join(["100000000000000000000"] * 20) + ")"

FIB = """
    (define (fib n)
      (if (< n 2)
          n
          (+ (fib (- n 1)) (fib (- n 2)))))
"""


def test_tokenizer():
    source = '((some atoms) (could be (here)))'
    tokens = ['(', '(', 'some', 'atoms', ')', '(', 'could', 'be', '(', 'here', ')', ')', ')']
    assert tokenize(source) == tokens
    assert tokenize('(+ 1\n\t2)') == ['(', '+', '1', '2', ')']
    assert tokenize('') == []
    assert tokenize('   ') == []


def test_parse_token():
    assert parse_token('42') == 42
    assert parse_token('-7') == -7
    assert parse_token('3.14') == 3.14
    assert parse_token('-0.5') == -0.5
    assert parse_token('true') is True
    assert parse_token('false') is False
    assert parse_token('+') is Symbol.ADD
    assert parse_token('-') is Symbol.SUB
    assert parse_token('<=') is Symbol.LE
    assert parse_token('lambda') is Symbol.LAMBDA
    assert parse_token('cons') is Symbol.CONS
    assert parse_token('x') == 'x'
    assert parse_token('sum-of-squares') == 'sum-of-squares'
    assert parse_token('True') == 'True'
    assert parse_token('1.') == '1.'


def test_parser():
    assert parse('b') == 'b'
    assert parse('12') == 12
    assert parse('()') == []
    assert parse('(c)') == ['c']
    assert parse('(+ 1 2)') == [Symbol.ADD, 1, 2]
    assert parse('((e) f)') == [['e'], 'f']
    assert parse('(g (h) ())') == ['g', ['h'], []]
    assert parse('(define (sq x) (* x x))') == [
        Symbol.DEFINE, ['sq', 'x'], [Symbol.MUL, 'x', 'x']]
    assert parse_many('(g) (h) 1') == [['g'], ['h'], 1]
    assert parse_many('') == []


def test_parse_errors():
    with pytest.raises(MissingClosingParenthesis):
        parse('(+ 1 2')
    with pytest.raises(MissingClosingParenthesis):
        parse('((+ 1 2)')
    with pytest.raises(UnexpectedEndOfInput):
        parse('')
    with pytest.raises(UnexpectedEndOfInput):
        parse(')')
    with pytest.raises(TrailingTokens) as excinfo:
        parse('(+ 1 2))')
    assert excinfo.value.leftover == [')']
    with pytest.raises(TrailingTokens) as excinfo:
        parse('1 (2)')
    assert excinfo.value.leftover == ['(', '2', ')']
    with pytest.raises(MissingClosingParenthesis):
        parse_many('(a) (b')


eval_tests = [
    # Literals
    "42 --> 42",
    "-7 --> -7",
    "3.14 --> 3.14",
    "true --> true",
    "false --> false",

    # Arithmetic
    "(+ 1 2) --> 3",
    "(+ 1 2 3 4) --> 10",
    "(+) --> 0",
    "(+ 1 2.5) --> 3.5",
    "(- 1) --> -1",
    "(- 1 2) --> -1",
    "(- 20 5 3 2) --> 10",
    "(*) --> 1",
    "(* 2 3 4) --> 24",
    "(/ 5 2) --> 2.5",
    "(/ 20 5 2) --> 2.0",
    "(mod 5 2) --> 1",
    "(mod 10 5) --> 0",
    "(mod -5 2) --> 1",
    "(mod 5 -2) --> -1",
    "(rem 5 2) --> 1",
    "(rem -5 2) --> -1",
    "(rem 5 -2) --> 1",
    "(+ (* 2 3) (- 10 5)) --> 11",

    # Comparison
    "(< 1 2 3) --> true",
    "(< 1 3 2) --> false",
    "(> 3 2 1) --> true",
    "(<= 1 1 2) --> true",
    "(>= 2 2 3) --> false",
    "(= 4 4 4) --> true",
    "(= 4 4 5) --> false",
    "(= 1 1.0) --> true",

    # Logical
    "(and) --> true",
    "(or) --> false",
    "(and true false) --> false",
    "(and 1 2) --> 2",
    "(and 1 false 2) --> false",
    "(and false (/ 1 0)) --> false",
    "(or false 3) --> 3",
    "(or false false) --> false",
    "(or true (/ 1 0)) --> true",
    "(not true) --> false",
    "(not false) --> true",
    "(not 42) --> false",
    "(not (if false 1)) --> true",
    "(and (or false true) (not true)) --> false",

    # if
    "(if true 42 0) --> 42",
    "(if false 42 0) --> 0",
    "(if 0 1 2) --> 1",
    "(if (list) 1 2) --> 1",
    "(if (> 5 2) (+ 3 5) (- 10 5)) --> 8",
    "(if true 42) --> 42",
    "(if false 42) --> nil",

    # Lists
    "(list) --> ()",
    "(list 1 2 3) --> (1 2 3)",
    "(list 1 (list 2 3)) --> (1 (2 3))",
    "(car (list 1 2 3)) --> 1",
    "(cdr (list 1 2 3)) --> (2 3)",
    "(cdr (list 1)) --> ()",
    "(cons 1 (list 2 3)) --> (1 2 3)",
    "(cons (list 1 2) (list 3 4)) --> ((1 2) 3 4)",
    "(car (cdr (list 1 2 3))) --> 2",
    "(cons 1 (cons 2 (cons 3 (list)))) --> (1 2 3)",

    # define and lambda
    "(define x 42) --> x",
    "(define x 42) (+ x 10) --> 52",
    "(define y (+ 2 3)) y --> 5",
    "(define z 10) (define z 20) z --> 20",
    "(define (add a b) (+ a b)) --> add",
    "(define (add a b) (+ a b)) (add 7 3) --> 10",
    "(lambda (x) x) --> #<Lambda>",
    "(define (f) 1) f --> #<Function: f>",
    "((lambda (x) (+ x 1)) 5) --> 6",
    "((lambda (x y) (+ x y)) 3 4) --> 7",
    "((lambda () 7)) --> 7",
    "(((lambda (x) (lambda (y) (+ x y))) 5) 7) --> 12",
    "((lambda (f x) (f x)) (lambda (n) (* n n)) 6) --> 36",
    "((lambda (x) ((lambda (x) (+ x 1)) 10)) 5) --> 11",
    "((if true (lambda (x) x) 0) 9) --> 9",

    """
        (define (square x) (* x x))
        (define (sum-of-squares a b) (+ (square a) (square b)))
        (sum-of-squares 3 4)
        --> 25
    """,

    """
        (define x 10)
        ((lambda (y) (+ x y)) 5)
        --> 15
    """,

    # Arguments see the bindings made by the arguments before them
    "(list (define x 5) x) --> (x 5)",
    "(+ (car (cdr (list (define n 2) n))) 1) --> 3",

    FACTORIAL + "(factorial 5) --> 120",
    FACTORIAL + "(factorial 0) --> 1",
    FIB + "(fib 0) --> 0",
    FIB + "(fib 1) --> 1",
    FIB + "(fib 10) --> 55",
]


def make_params(*test_packs):
    return [pair.split("-->") for pair in sum(test_packs, [])]


@pytest.mark.parametrize("code,result", make_params(eval_tests))
def test_eval(code, result):
    assert to_string(e(code)) == result.strip()


def test_literals_keep_environment():
    env = {'x': 42, 'y': 10}
    assert evaluate(42, env) == (42, env)
    assert evaluate('x', env) == (42, env)
    assert evaluate(parse('y'), env) == (10, env)


def test_evaluate_defaults_to_empty_environment():
    assert evaluate(parse('(+ 1 2)')) == (3, {})
    with pytest.raises(UndefinedVariable):
        evaluate('x')


def test_evaluation_is_deterministic():
    expr = parse('((lambda (x) (* x (+ x 1))) 6)')
    assert evaluate(expr, {}) == evaluate(expr, {}) == (42, {})


def test_define_returns_new_environment():
    env = {}
    name, new_env = p('(define x 42)')
    assert name == 'x'
    assert new_env == {'x': 42}
    _, env = evaluate(parse('(define x 1)'), env)
    _, env2 = evaluate(parse('(define x 2)'), env)
    assert env == {'x': 1}
    assert env2 == {'x': 2}


def test_define_function():
    _, env = p('(define (add x y) (+ x y))')
    add = env['add']
    assert isinstance(add, Procedure)
    assert add.name == 'add'
    assert add.params == ('x', 'y')
    assert 'add' not in add.env


def test_lambda_creates_procedure():
    value, env = p('(lambda (x) (+ x 1))')
    assert isinstance(value, Procedure)
    assert value.params == ('x',)
    assert value.name is None
    assert env == {}


def test_closure_captures_definition_environment():
    _, env = evaluate(parse('(define x 10)'))
    _, env = evaluate(parse('(define f (lambda (y) (+ x y)))'), env)
    _, env = evaluate(parse('(define x 100)'), env)
    assert evaluate(parse('(f 5)'), env)[0] == 15
    assert evaluate(parse('((lambda (y) (+ x y)) 5)'), env)[0] == 105


def test_procedure_call_does_not_leak_bindings():
    env = {'a': 1}
    value, new_env = evaluate(parse('((lambda (y) (define z y)) 5)'), env)
    assert value == 'z'
    assert new_env == {'a': 1}
    assert env == {'a': 1}

    _, env = evaluate(parse(FACTORIAL), env)
    before = dict(env)
    value, after = evaluate(parse('(factorial 3)'), env)
    assert value == 6
    assert after == before
    assert 'n' not in after


def test_arguments_bind_over_closure_names():
    _, env = evaluate(parse('(define (f f) (+ f 1))'))
    assert evaluate(parse('(f 1)'), env)[0] == 2


def test_define_in_argument_reaches_later_arguments():
    value, env = p('(+ (car (cdr (list (define n 2) 0))) n)')
    assert value == 2
    assert env == {'n': 2}


def test_if_condition_threads_environment():
    assert p("(if (define x 1) x 0)") == (1, {"x": 1})
    assert p("(if (and (define y 2) false) 0 y)") == (2, {"y": 2})
    assert p("(if (define z 3) z)") == (3, {"z": 3})


def test_short_circuit_stops_environment_threading():
    value, env = p('(and false (define x 1))')
    assert value is False
    assert env == {}
    value, env = p('(or (define x 1) (define y 2))')
    assert value == 'x'
    assert env == {'x': 1}


@pytest.mark.parametrize("code,error", [
    ("z", UndefinedVariable),
    ("(+ x 1)", UndefinedVariable),
    ("+", UndefinedVariable),
    ("(foo 1)", UndefinedFunction),
    ("(define x 5) (x 1)", NotAFunction),
    ("((list 1) 2)", NotAFunction),
    ("(1 2)", UnrecognizedExpression),
    ("()", UnrecognizedExpression),
    ("(quote a)", UnrecognizedExpression),
    ("(if)", InvalidForm),
    ("(if true)", InvalidForm),
    ("(if true 1 2 3)", InvalidForm),
    ("(define x)", InvalidForm),
    ("(define 5 1)", InvalidForm),
    ("(define (f 1) 1)", InvalidForm),
    ("(lambda x x)", InvalidForm),
    ("(lambda (1) x)", InvalidForm),
    ("(lambda (x))", InvalidForm),
    ("(+ 1 true)", LispTypeError),
    ("(+ 1 (list))", LispTypeError),
    ("(< 1 (list))", LispTypeError),
    ("(car 42)", LispTypeError),
    ("(cdr 42)", LispTypeError),
    ("(cons 1 2)", LispTypeError),
    ("(car (list))", EmptyListError),
    ("(cdr (list))", EmptyListError),
    ("(mod 10 5 2)", ArityError),
    ("(rem 10)", ArityError),
    ("(-)", ArityError),
    ("(/ 1)", ArityError),
    ("(< 1)", ArityError),
    ("(=)", ArityError),
    ("(not)", ArityError),
    ("(not 1 2)", ArityError),
    ("(car)", ArityError),
    ("(car (list 1) (list 2))", ArityError),
    ("(cons 1)", ArityError),
    ("((lambda (x y) (+ x y)) 5)", ArityError),
    ("(/ 10 0)", DivisionByZero),
    ("(/ 10 2 0)", DivisionByZero),
    ("(/ 10 0.0)", DivisionByZero),
    ("(mod 1 0)", DivisionByZero),
    ("(rem 1 0)", DivisionByZero),
    ("(/ %s 3)" % HUGE, LispTypeError),
    ("(+ %s 0.5)" % HUGE, LispTypeError),
])
def test_eval_errors(code, error):
    with pytest.raises(error):
        e(code)


def test_error_messages():
    with pytest.raises(LispTypeError, match="/: result too large for a float"):
        e("(/ %s 3)" % HUGE)
    with pytest.raises(UndefinedVariable, match='Undefined variable: z'):
        e('z')
    with pytest.raises(ArityError, match='mod requires exactly 2 arguments'):
        e('(mod 10 5 2)')
    with pytest.raises(ArityError, match='not requires exactly 1 argument'):
        e('(not)')
    with pytest.raises(EmptyListError, match='car: cannot take car of empty list'):
        e('(car (list))')
    with pytest.raises(LispTypeError, match='cons: second argument must be a list'):
        e('(cons 1 2)')
    with pytest.raises(InvalidForm, match="Invalid 'if' form"):
        e('(if true 1 2 3)')


def test_procedure_arity_error():
    with pytest.raises(ArityError, match='Expected 2 arguments, got 1') as excinfo:
        e('((lambda (x y) (+ x y)) 5)')
    assert (excinfo.value.expected, excinfo.value.got) == (2, 1)
    with pytest.raises(ArityError, match='Expected 1 arguments, got 2'):
        e('((lambda (x) (+ x 1)) 5 6)')


def test_error_keeps_caller_environment():
    _, env = evaluate(parse('(define x 1)'))
    with pytest.raises(DivisionByZero):
        evaluate(parse('(list (define y 2) (/ 1 0))'), env)
    assert env == {'x': 1}


def test_to_string():
    assert to_string(None) == 'nil'
    assert to_string(True) == 'true'
    assert to_string(False) == 'false'
    assert to_string(0) == '0'
    assert to_string(2.5) == '2.5'
    assert to_string([1, [2, True], []]) == '(1 (2 true) ())'
    assert to_string(Symbol.ADD) == '+'
    assert to_string(parse('(define (f x) (* x 2))')) == '(define (f x) (* x 2))'


# REPL:

def make_repl(tmp_path, lines):
    inputs = iter(lines)
    output = []

    def read(prompt):
        try:
            return next(inputs)
        except StopIteration:
            raise EOFError

    repl = Repl(history_path=str(tmp_path / 'history'), read=read, write=output.append)
    return repl, output


def test_repl_session(tmp_path):
    repl, output = make_repl(tmp_path, ['(define x 2)', '', '  (* x 21)  ', ':exit', '(+ 1 1)'])
    repl.run()
    assert output[1:] == ['x', '42']
    assert (tmp_path / 'history').read_text() == '(define x 2)\n(* x 21)\n:exit\n'


def test_repl_reports_errors_and_keeps_environment(tmp_path):
    repl, output = make_repl(tmp_path, [
        '(define x 1)',
        '(define y (car (list)))',
        '(+ 1',
        '(1 2) 3',
        'y',
        'x',
    ])
    repl.run()
    assert output[1:] == [
        'x',
        'Error: car: cannot take car of empty list',
        'Parse error: Missing closing parenthesis',
        'Parse error: Bad trailing tokens: 3',
        'Error: Undefined variable: y',
        '1',
        '',
    ]
    assert repl.env == {'x': 1}


def test_repl_reset(tmp_path):
    repl, output = make_repl(tmp_path, ['(define x 1)', ':reset', 'x', ':q'])
    repl.run()
    assert output[1:] == ['x', 'Environment reset.', 'Error: Undefined variable: x']
    assert repl.env == {}


def test_repl_commands(tmp_path):
    repl, output = make_repl(tmp_path, ['(+ 1 2)', ':history', ':help', ':cls'])
    repl.run()
    assert output[1:4] == ['3', '1: (+ 1 2)', '2: :history']
    assert output[4].startswith('Available commands:')
    assert output[5] == '\x1b[2J\x1b[H'


def test_repl_history_limit(tmp_path):
    history = tmp_path / 'history'
    history.write_text(''.join('(+ %d 1)\n\n' % i for i in range(150)))
    repl = Repl(history_path=str(history))
    lines = repl.load_history()
    assert len(lines) == MAX_HISTORY
    assert lines[0] == '(+ 50 1)'
    assert lines[-1] == '(+ 149 1)'


def test_repl_empty_history(tmp_path):
    output = []
    repl = Repl(history_path=str(tmp_path / 'missing'), write=output.append)
    assert repl.load_history() == []
    repl.show_history()
    assert output == ['History is empty']


def test_repl_process_recursion_limit(tmp_path):
    repl = Repl(history_path=str(tmp_path / 'history'))
    repl.process('(define (loop n) (loop n))')
    assert repl.process('(loop 1)') == 'Error: maximum recursion depth exceeded'
    assert repl.process('(+ 1 2)') == '3'


def test_history_path_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv('EXLISP_HISTORY', str(tmp_path / 'h'))
    assert default_history_path() == str(tmp_path / 'h')
    monkeypatch.delenv('EXLISP_HISTORY')
    assert default_history_path().endswith('.exlisp_history')


# Command line:

def test_cli_version(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(['--version'])
    assert excinfo.value.code == 0
    assert capsys.readouterr().out.strip() == 'ExLisp version 0.1.0'


def test_cli_runs_files(tmp_path, capsys):
    first = tmp_path / 'fact.lisp'
    first.write_text(FACTORIAL)
    second = tmp_path / 'main.lisp'
    second.write_text('(define n 5)\n(factorial n)\n')
    assert main([str(first), str(second)]) == 0
    assert capsys.readouterr().out == '120\n'


def test_cli_reports_errors(tmp_path, caplog):
    source = tmp_path / 'bad.lisp'
    source.write_text('(/ 1 0)')
    assert main([str(source)]) == 1
    assert 'Division by zero' in caplog.text
    assert main([str(tmp_path / 'missing.lisp')]) == 1


@pytest.mark.skipif(not hasattr(sys, 'get_int_max_str_digits'),
                    reason='integer string conversion is unlimited before Python 3.11')
def test_integer_literal_over_conversion_limit():
    with pytest.raises(NumberTooLarge):
        parse('9' * 5000)
    with pytest.raises(NumberTooLarge):
        parse('(+ 1 -%s)' % ('9' * 5000))


def test_repl_reports_arithmetic_overflow(tmp_path):
    repl = Repl(history_path=str(tmp_path / 'history'))
    assert repl.process('(/ %s 3)' % HUGE) == 'Error: /: result too large for a float'
    assert repl.env == {}


def test_cli_reports_runaway_recursion(tmp_path, caplog):
    source = tmp_path / 'loop.lisp'
    source.write_text('(define (loop n) (loop n)) (loop 1)')
    assert main([str(source)]) == 1
    assert 'recursion' in caplog.text


def test_cli_reports_undecodable_source(tmp_path, caplog):
    source = tmp_path / 'latin1.lisp'
    source.write_bytes(b'(+ 1 \xff)')
    assert main([str(source)]) == 1
    assert 'utf-8' in caplog.text
