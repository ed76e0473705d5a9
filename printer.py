"""
Debug pretty-printer for Lox syntax trees
Renders expressions and statements as parenthesized prefix strings
"""

from typing import Union

from ast_nodes import (
    Expr, Stmt, EXPRESSION_TYPES, STATEMENT_TYPES,
    Binary, Conditional, Grouping, Literal, Logical, Unary, Variable,
    Block, Break, Expression, If, Print, Var, While
)
from utilities import stringify


def parenthesize(name: str, *parts: Union[Expr, Stmt, None]) -> str:
    rendered = [print_ast(part) for part in parts if part is not None]
    return "(" + " ".join([name] + rendered) + ")"


def print_ast(node: Union[Expr, Stmt]) -> str:
    """Render any node, e.g. '1 + 2 * 3' -> '(+ 1 (* 2 3))'"""
    if isinstance(node, STATEMENT_TYPES):
        return print_stmt(node)
    if not isinstance(node, EXPRESSION_TYPES):
        raise TypeError(f"Cannot print node: {type(node).__name__}")

    if isinstance(node, Literal):
        return stringify(node.value)
    if isinstance(node, Grouping):
        return parenthesize("group", node.expression)
    if isinstance(node, Unary):
        return parenthesize(node.operator.lexeme, node.right)
    if isinstance(node, (Binary, Logical)):
        return parenthesize(node.operator.lexeme, node.left, node.right)
    if isinstance(node, Conditional):
        return parenthesize("if", node.condition, node.if_true, node.if_false)
    if isinstance(node, Variable):
        return node.name.lexeme
    return f"(= {node.name.lexeme} {print_ast(node.value)})"


def print_stmt(stmt: Stmt) -> str:
    if isinstance(stmt, Expression):
        return parenthesize("expr", stmt.expression)
    if isinstance(stmt, Print):
        return parenthesize("print", stmt.expression)
    if isinstance(stmt, Var):
        if stmt.initializer is None:
            return f"(var {stmt.name.lexeme})"
        return f"(var {stmt.name.lexeme} {print_ast(stmt.initializer)})"
    if isinstance(stmt, Block):
        return parenthesize("block", *stmt.statements)
    if isinstance(stmt, If):
        return parenthesize("if", stmt.condition, stmt.then_branch, stmt.else_branch)
    if isinstance(stmt, While):
        return parenthesize("while", stmt.condition, stmt.body)
    if isinstance(stmt, Break):
        return "(break)"

    raise TypeError(f"Cannot print node: {type(stmt).__name__}")
