"""
Lox Programming Language Parser
Recursive-descent parser with panic-mode error recovery
"""

import sys
from typing import List, Optional

from tokens import Token, TokenType
from scanner import Scanner
from ast_nodes import (
    Expr, Stmt,
    Assign, Binary, Conditional, Grouping, Literal, Logical, Unary, Variable,
    Block, Break, Expression, If, Print, Var, While
)
from error_handling import ErrorReporter, LoxParseError


# Tokens that begin a declaration or statement; resynchronization stops before them
STATEMENT_STARTS = {
    TokenType.CLASS,
    TokenType.FUN,
    TokenType.VAR,
    TokenType.FOR,
    TokenType.IF,
    TokenType.WHILE,
    TokenType.PRINT,
    TokenType.RETURN,
}

NESTING_TOO_DEEP = "Expression nesting too deep."


class Parser:
    """Turns a token list into statements

    Precedence, loosest to tightest:
        comma -> assignment -> conditional -> or -> and -> equality
        -> comparison -> term -> factor -> unary -> primary
    """

    def __init__(self, tokens: List[Token], reporter: Optional[ErrorReporter] = None,
                 debug: bool = False):
        self.tokens = tokens
        self.reporter = reporter if reporter is not None else ErrorReporter()
        self.debug = debug
        self.current = 0
        self.in_loop = False

    def parse(self) -> List[Stmt]:
        """Parse every declaration, skipping the ones that fail to parse"""
        statements = []
        while not self._is_at_end():
            declaration = self._declaration()
            if declaration is not None:
                statements.append(declaration)
        return statements

    def parse_expression(self) -> Expr:
        """Parse a single expression spanning the whole token list

        Raises LoxParseError on malformed input.
        """
        try:
            expr = self._expression()
        except RecursionError:
            raise self._error(self._peek(), NESTING_TOO_DEEP) from None
        if not self._is_at_end():
            raise self._error(self._peek(), "Expect end of expression.")
        return expr

    # ------------------------------------------------------------------
    # Declarations and statements
    # ------------------------------------------------------------------

    def _declaration(self) -> Optional[Stmt]:
        try:
            if self._match(TokenType.VAR):
                stmt = self._var_declaration()
            else:
                stmt = self._statement()
            if self.debug:
                print(f"Parsed {type(stmt).__name__} at line {self._previous().line}", file=sys.stderr)
            return stmt
        except LoxParseError as e:
            if self.debug:
                print(f"Recovering from parse error at line {e.token.line}: {e.message}",
                      file=sys.stderr)
            self._synchronize()
            return None
        except RecursionError:
            self._error(self._peek(), NESTING_TOO_DEEP)
            self._synchronize()
            return None

    def _var_declaration(self) -> Stmt:
        name = self._consume(TokenType.IDENTIFIER, "Expect variable name.")

        initializer = None
        if self._match(TokenType.EQUAL):
            initializer = self._expression()

        self._consume(TokenType.SEMICOLON, "Expect ';' after variable declaration.")
        return Var(name, initializer)

    def _statement(self) -> Stmt:
        if self._match(TokenType.BREAK):
            return self._break_statement()
        if self._match(TokenType.FOR):
            return self._for_statement()
        if self._match(TokenType.IF):
            return self._if_statement()
        if self._match(TokenType.PRINT):
            return self._print_statement()
        if self._match(TokenType.WHILE):
            return self._while_statement()
        if self._match(TokenType.LEFT_BRACE):
            return Block(tuple(self._block()))

        return self._expression_statement()

    def _break_statement(self) -> Stmt:
        keyword = self._previous()
        if not self.in_loop:
            raise self._error(keyword, "'break' is only allowed in loop bodies.")
        self._consume(TokenType.SEMICOLON, "Expect ';' after 'break'.")
        return Break(keyword)

    def _for_statement(self) -> Stmt:
        """Desugar 'for (init; cond; incr) body' into a while loop"""
        self._consume(TokenType.LEFT_PAREN, "Expect '(' after 'for'.")

        if self._match(TokenType.SEMICOLON):
            initializer = None
        elif self._match(TokenType.VAR):
            initializer = self._var_declaration()
        else:
            initializer = self._expression_statement()

        condition = None
        if not self._check(TokenType.SEMICOLON):
            condition = self._expression()
        self._consume(TokenType.SEMICOLON, "Expect ';' after loop condition.")

        increment = None
        if not self._check(TokenType.RIGHT_PAREN):
            increment = self._expression()
        self._consume(TokenType.RIGHT_PAREN, "Expect ')' after for clauses.")

        body = self._loop_body()

        if increment is not None:
            body = Block((body, Expression(increment)))

        if condition is None:
            condition = Literal(True)
        body = While(condition, body)

        if initializer is not None:
            body = Block((initializer, body))

        return body

    def _while_statement(self) -> Stmt:
        self._consume(TokenType.LEFT_PAREN, "Expect '(' after 'while'.")
        condition = self._expression()
        self._consume(TokenType.RIGHT_PAREN, "Expect ')' after condition.")

        return While(condition, self._loop_body())

    def _loop_body(self) -> Stmt:
        enclosing = self.in_loop
        self.in_loop = True
        try:
            return self._statement()
        finally:
            self.in_loop = enclosing

    def _if_statement(self) -> Stmt:
        self._consume(TokenType.LEFT_PAREN, "Expect '(' after 'if'.")
        condition = self._expression()
        self._consume(TokenType.RIGHT_PAREN, "Expect ')' after if condition.")

        then_branch = self._statement()
        else_branch = None
        if self._match(TokenType.ELSE):
            else_branch = self._statement()

        return If(condition, then_branch, else_branch)

    def _block(self) -> List[Stmt]:
        statements = []

        while not self._check(TokenType.RIGHT_BRACE) and not self._is_at_end():
            declaration = self._declaration()
            if declaration is not None:
                statements.append(declaration)

        self._consume(TokenType.RIGHT_BRACE, "Expect '}' after block.")
        return statements

    def _print_statement(self) -> Stmt:
        value = self._expression()
        self._consume(TokenType.SEMICOLON, "Expect ';' after value.")
        return Print(value)

    def _expression_statement(self) -> Stmt:
        expr = self._expression()
        self._consume(TokenType.SEMICOLON, "Expect ';' after expression.")
        return Expression(expr)

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def _expression(self) -> Expr:
        return self._comma()

    def _comma(self) -> Expr:
        expr = self._assignment()

        while self._match(TokenType.COMMA):
            operator = self._previous()
            right = self._assignment()
            expr = Binary(expr, operator, right)

        return expr

    def _assignment(self) -> Expr:
        expr = self._conditional()

        if self._match(TokenType.EQUAL):
            equals = self._previous()
            value = self._assignment()

            if isinstance(expr, Variable):
                return Assign(expr.name, value)

            # reported, but the parser is not confused so no recovery is needed
            self._error(equals, "Invalid assignment target.")

        return expr

    def _conditional(self) -> Expr:
        expr = self._or()

        if self._match(TokenType.QUESTION):
            if_true = self._expression()
            self._consume(TokenType.COLON, "Expect ':' in conditional.")
            if_false = self._conditional()
            expr = Conditional(expr, if_true, if_false)

        return expr

    def _or(self) -> Expr:
        expr = self._and()

        while self._match(TokenType.OR):
            operator = self._previous()
            right = self._and()
            expr = Logical(expr, operator, right)

        return expr

    def _and(self) -> Expr:
        expr = self._equality()

        while self._match(TokenType.AND):
            operator = self._previous()
            right = self._equality()
            expr = Logical(expr, operator, right)

        return expr

    def _equality(self) -> Expr:
        return self._left_associative(self._comparison, TokenType.BANG_EQUAL, TokenType.EQUAL_EQUAL)

    def _comparison(self) -> Expr:
        return self._left_associative(
            self._term,
            TokenType.GREATER, TokenType.GREATER_EQUAL, TokenType.LESS, TokenType.LESS_EQUAL
        )

    def _term(self) -> Expr:
        return self._left_associative(self._factor, TokenType.MINUS, TokenType.PLUS)

    def _factor(self) -> Expr:
        return self._left_associative(self._unary, TokenType.SLASH, TokenType.STAR)

    def _left_associative(self, operand, *operators: TokenType) -> Expr:
        """Fold 'operand (op operand)*' into a left-leaning Binary chain"""
        expr = operand()

        while self._match(*operators):
            operator = self._previous()
            right = operand()
            expr = Binary(expr, operator, right)

        return expr

    def _unary(self) -> Expr:
        if self._match(TokenType.BANG, TokenType.MINUS):
            operator = self._previous()
            right = self._unary()
            return Unary(operator, right)

        return self._primary()

    def _primary(self) -> Expr:
        if self._match(TokenType.FALSE):
            return Literal(False)
        if self._match(TokenType.TRUE):
            return Literal(True)
        if self._match(TokenType.NIL):
            return Literal(None)

        if self._match(TokenType.NUMBER, TokenType.STRING):
            return Literal(self._previous().literal)

        if self._match(TokenType.IDENTIFIER):
            return Variable(self._previous())

        if self._match(TokenType.LEFT_PAREN):
            expr = self._expression()
            self._consume(TokenType.RIGHT_PAREN, "Expect ')' after expression.")
            return Grouping(expr)

        raise self._error(self._peek(), "Expect expression.")

    # ------------------------------------------------------------------
    # Token helpers
    # ------------------------------------------------------------------

    def _match(self, *types: TokenType) -> bool:
        for token_type in types:
            if self._check(token_type):
                self._advance()
                return True
        return False

    def _consume(self, token_type: TokenType, message: str) -> Token:
        if self._check(token_type):
            return self._advance()

        raise self._error(self._peek(), message)

    def _check(self, token_type: TokenType) -> bool:
        if self._is_at_end():
            return False
        return self._peek().type == token_type

    def _advance(self) -> Token:
        if not self._is_at_end():
            self.current += 1
        return self._previous()

    def _is_at_end(self) -> bool:
        return self._peek().type == TokenType.EOF

    def _peek(self) -> Token:
        return self.tokens[self.current]

    def _previous(self) -> Token:
        return self.tokens[self.current - 1]

    def _error(self, token: Token, message: str) -> LoxParseError:
        """Report a syntax error and build the signal the caller may raise"""
        self.reporter.error_at(token, message)
        return LoxParseError(token, message)

    def _synchronize(self) -> None:
        """Discard tokens until the next statement boundary"""
        self._advance()

        while not self._is_at_end():
            if self._previous().type == TokenType.SEMICOLON:
                return
            if self._peek().type in STATEMENT_STARTS:
                return
            self._advance()


def parse(tokens: List[Token], reporter: Optional[ErrorReporter] = None,
          debug: bool = False) -> List[Stmt]:
    """Parse a token list into the statements that parsed cleanly"""
    return Parser(tokens, reporter, debug).parse()


def parse_source(source: str, reporter: Optional[ErrorReporter] = None,
                 debug: bool = False) -> List[Stmt]:
    """Scan and parse source text in one step"""
    if reporter is None:
        reporter = ErrorReporter(source)
    tokens = Scanner(source, reporter, debug).scan_tokens()
    return parse(tokens, reporter, debug)


class LoxParser:
    """Main Lox parser combining scanner and parser"""

    def __init__(self, debug: bool = False):
        self.debug = debug

    def parse_file(self, filepath: str, reporter: Optional[ErrorReporter] = None) -> List[Stmt]:
        """Parse a Lox source file"""
        with open(filepath, 'r', encoding='utf-8') as f:
            content = f.read()
        return self.parse_string(content, reporter)

    def parse_string(self, text: str, reporter: Optional[ErrorReporter] = None) -> List[Stmt]:
        """Parse Lox source code from string"""
        return parse_source(text, reporter, self.debug)

    def parse_expression(self, text: str, reporter: Optional[ErrorReporter] = None) -> Expr:
        """Parse a single Lox expression; raises LoxParseError when malformed"""
        if reporter is None:
            reporter = ErrorReporter(text)
        tokens = Scanner(text, reporter, self.debug).scan_tokens()
        return Parser(tokens, reporter, self.debug).parse_expression()

    def tokenize(self, text: str, reporter: Optional[ErrorReporter] = None) -> List[Token]:
        """Tokenize Lox source code"""
        return Scanner(text, reporter, self.debug).scan_tokens()


# Factory functions for creating parsers
def create_parser(debug: bool = False) -> LoxParser:
    """Create a Lox parser"""
    return LoxParser(debug=debug)


def create_debug_parser() -> LoxParser:
    """Create a Lox parser with debug enabled"""
    return LoxParser(debug=True)
