"""
Lox Scanner
Single left-to-right pass turning source text into tokens
"""

import sys
from typing import Any, List, Optional

from tokens import KEYWORDS, Token, TokenType
from error_handling import ErrorReporter


SINGLE_CHAR_TOKENS = {
    '(': TokenType.LEFT_PAREN,
    ')': TokenType.RIGHT_PAREN,
    '{': TokenType.LEFT_BRACE,
    '}': TokenType.RIGHT_BRACE,
    ',': TokenType.COMMA,
    '.': TokenType.DOT,
    '-': TokenType.MINUS,
    '+': TokenType.PLUS,
    ';': TokenType.SEMICOLON,
    '*': TokenType.STAR,
    '?': TokenType.QUESTION,
    ':': TokenType.COLON,
}

# first char -> (kind when followed by '=', kind otherwise)
EQUAL_SUFFIX_TOKENS = {
    '!': (TokenType.BANG_EQUAL, TokenType.BANG),
    '=': (TokenType.EQUAL_EQUAL, TokenType.EQUAL),
    '<': (TokenType.LESS_EQUAL, TokenType.LESS),
    '>': (TokenType.GREATER_EQUAL, TokenType.GREATER),
}

WHITESPACE = {' ', '\r', '\t', '\n'}


class Scanner:
    """Lox scanner with line and column tracking

    Lexical errors are reported through the ErrorReporter and never stop the
    scan; the offending characters simply produce no token.
    """

    def __init__(self, source: str, reporter: Optional[ErrorReporter] = None, debug: bool = False):
        self.source = source
        self.reporter = reporter if reporter is not None else ErrorReporter(source)
        self.debug = debug
        self._reset()

    def _reset(self) -> None:
        self.tokens: List[Token] = []
        self.start = 0
        self.current = 0
        self.line = 1
        self.column = 1
        self.start_line = 1
        self.start_column = 1

    def scan_tokens(self) -> List[Token]:
        """Scan the whole source; the result always ends with a single EOF token"""
        self._reset()

        while not self._is_at_end():
            self.start = self.current
            self.start_line = self.line
            self.start_column = self.column
            self._scan_token()

        self.tokens.append(Token(TokenType.EOF, "", None, self.line, self.column, self.current))

        if self.debug:
            print(f"Scanned {len(self.tokens)} tokens", file=sys.stderr)

        return self.tokens

    def _scan_token(self) -> None:
        c = self._advance()

        if c in SINGLE_CHAR_TOKENS:
            self._add_token(SINGLE_CHAR_TOKENS[c])
        elif c in EQUAL_SUFFIX_TOKENS:
            with_equal, alone = EQUAL_SUFFIX_TOKENS[c]
            self._add_token(with_equal if self._match('=') else alone)
        elif c == '/':
            if self._match('/'):
                while self._peek() != '\n' and not self._is_at_end():
                    self._advance()
            elif self._match('*'):
                self._block_comment()
            else:
                self._add_token(TokenType.SLASH)
        elif c in WHITESPACE:
            pass
        elif c == '"':
            self._string()
        elif self._is_digit(c):
            self._number()
        elif self._is_alpha(c):
            self._identifier()
        else:
            self.reporter.error(self.line, f"Unexpected character: '{c}'",
                                self.start_column, self.start)

    def _block_comment(self) -> None:
        # '/*' already consumed; comments do not nest
        while not self._is_at_end():
            if self._peek() == '*' and self._peek_next() == '/':
                self._advance()
                self._advance()
                return
            self._advance()

        self.reporter.error(self.line, "Unterminated block comment.", self.column, self.current)

    def _string(self) -> None:
        while self._peek() != '"' and not self._is_at_end():
            self._advance()

        if self._is_at_end():
            self.reporter.error(self.line, "Unterminated string.", self.column, self.current)
            return

        # closing quote
        self._advance()

        value = self.source[self.start + 1:self.current - 1]
        self._add_token(TokenType.STRING, value)

    def _number(self) -> None:
        while self._is_digit(self._peek()):
            self._advance()

        # a trailing '.' without a digit after it is left for the next token
        if self._peek() == '.' and self._is_digit(self._peek_next()):
            self._advance()
            while self._is_digit(self._peek()):
                self._advance()

        self._add_token(TokenType.NUMBER, float(self.source[self.start:self.current]))

    def _identifier(self) -> None:
        while self._is_alphanumeric(self._peek()):
            self._advance()

        text = self.source[self.start:self.current]
        self._add_token(KEYWORDS.get(text, TokenType.IDENTIFIER))

    def _add_token(self, token_type: TokenType, literal: Any = None) -> None:
        text = self.source[self.start:self.current]
        self.tokens.append(
            Token(token_type, text, literal, self.start_line, self.start_column, self.start)
        )

    def _advance(self) -> str:
        c = self.source[self.current]
        self.current += 1
        if c == '\n':
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return c

    def _match(self, expected: str) -> bool:
        if self._is_at_end() or self.source[self.current] != expected:
            return False
        self._advance()
        return True

    def _peek(self) -> str:
        if self._is_at_end():
            return '\0'
        return self.source[self.current]

    def _peek_next(self) -> str:
        if self.current + 1 >= len(self.source):
            return '\0'
        return self.source[self.current + 1]

    def _is_at_end(self) -> bool:
        return self.current >= len(self.source)

    @staticmethod
    def _is_digit(c: str) -> bool:
        return '0' <= c <= '9'

    @staticmethod
    def _is_alpha(c: str) -> bool:
        return ('a' <= c <= 'z') or ('A' <= c <= 'Z') or c == '_'

    def _is_alphanumeric(self, c: str) -> bool:
        return self._is_alpha(c) or self._is_digit(c)


def scan(source: str, reporter: Optional[ErrorReporter] = None, debug: bool = False) -> List[Token]:
    """Scan source text into a token list ending with EOF"""
    return Scanner(source, reporter, debug).scan_tokens()
