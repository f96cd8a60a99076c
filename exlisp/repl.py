"""Interactive Read-Eval-Print Loop.

Every non-empty line is appended to a history file (``~/.exlisp_history``
unless ``EXLISP_HISTORY`` or the ``history_path`` argument says otherwise)
before it is handled. Lines starting with a colon are REPL commands, see
``HELP``; everything else is parsed as one expression and evaluated in the
session environment.

"""
import logging
import os

from .errors import EvalError, ParseError
from .evaluator import evaluate
from .parser import parse
from .printer import to_string


logger = logging.getLogger(__name__)

PROMPT = 'exlisp> '
HISTORY_FILE = '.exlisp_history'
MAX_HISTORY = 100
CLEAR_SCREEN = '\x1b[2J\x1b[H'

HELP = """Available commands:
:clear or :cls - Clear the screen
:history - Show command history
:reset - Reset the environment
:exit or :q - Exit the REPL
:help - Show this help message"""


def default_history_path():
    return os.environ.get('EXLISP_HISTORY') or os.path.join(os.path.expanduser('~'), HISTORY_FILE)


class Repl:
    """A REPL session holding the environment between lines.

    >>> repl = Repl(history_path=os.devnull)
    >>> repl.process('(define x 20)')
    'x'
    >>> repl.process('(+ x 1)')
    '21'

    """

    def __init__(self, env=None, history_path=None, read=input, write=print):
        self.env = dict(env or {})
        self.history_path = history_path or default_history_path()
        self.read = read
        self.write = write

    def run(self):
        self.write('ExLisp REPL - Type :help for commands, :exit to quit')
        while True:
            try:
                line = self.read(PROMPT)
            except EOFError:
                self.write('')
                break
            except KeyboardInterrupt:
                self.write('\nInterrupted. (Use :exit or ^D to exit)')
                continue

            line = line.strip()
            if not line:
                continue
            self.append_history(line)
            if not self.handle(line):
                break

    def handle(self, line):
        """Handle a single stripped input line. Return False to end the session."""
        if line in (':exit', ':q'):
            return False
        if line in (':clear', ':cls'):
            self.write(CLEAR_SCREEN)
        elif line == ':history':
            self.show_history()
        elif line == ':help':
            self.write(HELP)
        elif line == ':reset':
            self.env = {}
            logger.debug('Environment reset')
            self.write('Environment reset.')
        else:
            self.write(self.process(line))
        return True

    def process(self, line):
        """Evaluate one line and return the text to show.

        The session environment only advances when evaluation succeeds.

        """
        logger.debug('Evaluating %r', line)
        try:
            value, self.env = evaluate(parse(line), self.env)
        except ParseError as e:
            return 'Parse error: %s' % e
        except EvalError as e:
            return 'Error: %s' % e
        except RecursionError:
            return 'Error: maximum recursion depth exceeded'
        return to_string(value)

    # History file:

    def append_history(self, line):
        try:
            with open(self.history_path, 'a') as history_file:
                history_file.write(line + '\n')
        except OSError as e:
            logger.warning('Cannot write history file %s: %s', self.history_path, e)

    def load_history(self):
        """Return the last MAX_HISTORY non-empty lines of the history file."""
        if not os.path.exists(self.history_path):
            return []
        try:
            with open(self.history_path) as history_file:
                lines = [line.strip() for line in history_file]
        except OSError as e:
            logger.warning('Cannot read history file %s: %s', self.history_path, e)
            return []
        return [line for line in lines if line][-MAX_HISTORY:]

    def show_history(self):
        history = self.load_history()
        if not history:
            self.write('History is empty')
        for index, command in enumerate(history, 1):
            self.write('%d: %s' % (index, command))
