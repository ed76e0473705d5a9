"""
Lox abstract syntax tree
Passive, immutable node records; consumers dispatch on the node class
"""

from typing import Any, Optional, Tuple, Union
from collections import deque
from dataclasses import dataclass, fields, is_dataclass

from tokens import Token


# ============================================================================
# EXPRESSIONS
# ============================================================================

@dataclass(frozen=True)
class Literal:
    value: Any


@dataclass(frozen=True)
class Grouping:
    expression: 'Expr'


@dataclass(frozen=True)
class Unary:
    operator: Token
    right: 'Expr'


@dataclass(frozen=True)
class Binary:
    """Arithmetic, comparison, equality and comma operators"""
    left: 'Expr'
    operator: Token
    right: 'Expr'


@dataclass(frozen=True)
class Logical:
    """Short-circuiting 'and' / 'or'"""
    left: 'Expr'
    operator: Token
    right: 'Expr'


@dataclass(frozen=True)
class Conditional:
    """Ternary 'condition ? if_true : if_false'"""
    condition: 'Expr'
    if_true: 'Expr'
    if_false: 'Expr'


@dataclass(frozen=True)
class Variable:
    name: Token


@dataclass(frozen=True)
class Assign:
    name: Token
    value: 'Expr'


Expr = Union[Literal, Grouping, Unary, Binary, Logical, Conditional, Variable, Assign]


# ============================================================================
# STATEMENTS
# ============================================================================

@dataclass(frozen=True)
class Expression:
    expression: Expr


@dataclass(frozen=True)
class Print:
    expression: Expr


@dataclass(frozen=True)
class Var:
    name: Token
    initializer: Optional[Expr] = None


@dataclass(frozen=True)
class Block:
    statements: Tuple['Stmt', ...]


@dataclass(frozen=True)
class If:
    condition: Expr
    then_branch: 'Stmt'
    else_branch: Optional['Stmt'] = None


@dataclass(frozen=True)
class While:
    condition: Expr
    body: 'Stmt'


@dataclass(frozen=True)
class Break:
    keyword: Token


Stmt = Union[Expression, Print, Var, Block, If, While, Break]

EXPRESSION_TYPES = (Literal, Grouping, Unary, Binary, Logical, Conditional, Variable, Assign)
STATEMENT_TYPES = (Expression, Print, Var, Block, If, While, Break)


def node_token(node: Union[Expr, Stmt]) -> Optional[Token]:
    """The token nearest the root of node, searched breadth first without recursion"""
    pending = deque([node])
    while pending:
        item = pending.popleft()
        if isinstance(item, Token):
            return item
        if isinstance(item, tuple):
            pending.extend(item)
        elif is_dataclass(item):
            pending.extend(getattr(item, field.name) for field in fields(item))
    return None
