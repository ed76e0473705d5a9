"""
Error signals and diagnostics for Lox
Diagnostics are plain dictionaries; an ErrorReporter accumulates them for one run
"""

from typing import List, Optional, Dict, TextIO
from dataclasses import dataclass
from pyparsing import col, line, lineno

from tokens import Token, TokenType


LEXICAL = 'lexical'
PARSE = 'parse'
RUNTIME = 'runtime'


# ============================================================================
# DATA STRUCTURES (Immutable Dictionaries)
# ============================================================================

def make_diagnostic(
    kind: str,
    message: str,
    line: int,
    column: Optional[int] = None,
    offset: Optional[int] = None,
    where: str = ""
) -> Dict:
    """Create an immutable diagnostic structure"""
    return {
        'kind': kind,
        'message': message,
        'line': line,
        'column': column,
        'offset': offset,
        'where': where
    }


def format_diagnostic(diagnostic: Dict) -> str:
    """Format a diagnostic the way the driver prints it"""
    if diagnostic['kind'] == RUNTIME:
        return f"{diagnostic['message']}\n[line {diagnostic['line']}]"
    return f"[line {diagnostic['line']}] Error{diagnostic['where']}: {diagnostic['message']}"


# ============================================================================
# PURE FUNCTIONS
# ============================================================================

def get_context_lines(source_text: str, offset: Optional[int]) -> str:
    """Render the source line holding offset with a caret under the offending column"""
    if not source_text or offset is None:
        return ""

    offset = max(0, min(offset, len(source_text)))
    line_num = lineno(offset, source_text)
    col_num = col(offset, source_text)
    source_line = line(offset, source_text)

    line_prefix = f"{line_num:4d}: "
    caret = f"{' ' * (len(line_prefix) + col_num - 1)}^ Error here"
    return f"{line_prefix}{source_line}\n{caret}"


def token_location(token: Token) -> str:
    """The ' at ...' suffix used when reporting an error at a token"""
    if token.type == TokenType.EOF:
        return " at end"
    return f" at '{token.lexeme}'"


# ============================================================================
# ERROR SIGNALS
# ============================================================================

class LoxError(Exception):
    """Base class for language errors tied to a source token"""
    def __init__(self, token: Token, message: str):
        self.token = token
        self.message = message
        super().__init__(message)


class LoxParseError(LoxError):
    """Raised inside the parser to unwind to the nearest declaration and resynchronize"""


class LoxRuntimeError(LoxError):
    """Runtime failure carrying the token whose evaluation failed"""

    def __str__(self) -> str:
        return f"{self.message}\n[line {self.token.line}]"


@dataclass(frozen=True)
class BreakSignal:
    """Returned by statement execution when a 'break' was executed"""
    token: Token


# ============================================================================
# REPORTER
# ============================================================================

class ErrorReporter:
    """Collects the diagnostics of one scan/parse/interpret run"""

    def __init__(self, source_text: str = "", stream: Optional[TextIO] = None):
        self.source_text = source_text
        self.stream = stream
        self.diagnostics: List[Dict] = []

    @property
    def had_error(self) -> bool:
        return any(d['kind'] != RUNTIME for d in self.diagnostics)

    @property
    def had_runtime_error(self) -> bool:
        return any(d['kind'] == RUNTIME for d in self.diagnostics)

    def error(self, line: int, message: str, column: Optional[int] = None,
              offset: Optional[int] = None) -> None:
        """Report a lexical error at a source line"""
        self._report(make_diagnostic(LEXICAL, message, line, column, offset))

    def error_at(self, token: Token, message: str) -> None:
        """Report a syntax error at a token"""
        self._report(make_diagnostic(
            PARSE, message, token.line, token.column, token.offset, token_location(token)
        ))

    def runtime_error(self, error: LoxRuntimeError) -> None:
        token = error.token
        self._report(make_diagnostic(
            RUNTIME, error.message, token.line, token.column, token.offset
        ))

    def render(self, diagnostic: Dict) -> str:
        """Format a diagnostic, followed by its source context when the source is known"""
        text = format_diagnostic(diagnostic)
        context = get_context_lines(self.source_text, diagnostic['offset'])
        if context:
            text += "\n" + context
        return text

    def messages(self) -> List[str]:
        return [format_diagnostic(d) for d in self.diagnostics]

    def reset(self, source_text: Optional[str] = None) -> None:
        """Forget every diagnostic, optionally switching to a new source text"""
        self.diagnostics = []
        if source_text is not None:
            self.source_text = source_text

    def _report(self, diagnostic: Dict) -> None:
        self.diagnostics.append(diagnostic)
        if self.stream is not None:
            print(self.render(diagnostic), file=self.stream)
