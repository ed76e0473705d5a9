"""
Lox Interpreter - tree-walking evaluator
The active environment is threaded through every call instead of being
held in shared mutable state; leaving a block simply drops its scope.
"""

import sys
import operator
from typing import Any, Dict, List, Optional, TextIO

from tokens import Token, TokenType
from ast_nodes import (
  Expr, Stmt,
  Assign, Binary, Conditional, Grouping, Literal, Logical, Unary, Variable,
  Block, Break, Expression, If, Print, Var, While,
  node_token
)
from environment import Environment
from error_handling import BreakSignal, ErrorReporter, LoxRuntimeError
from utilities import (
  binary_arithmetic_op,
  check_number_operand,
  is_equal,
  is_truthy,
  lox_add,
  lox_divide,
  stringify
)


# ============================================================================
# OPERATOR TABLE
# ============================================================================

BINARY_OPERATORS = {
    TokenType.MINUS: binary_arithmetic_op(operator.sub),
    TokenType.STAR: binary_arithmetic_op(operator.mul),
    TokenType.SLASH: lox_divide,
    TokenType.PLUS: lox_add,
    TokenType.GREATER: binary_arithmetic_op(operator.gt),
    TokenType.GREATER_EQUAL: binary_arithmetic_op(operator.ge),
    TokenType.LESS: binary_arithmetic_op(operator.lt),
    TokenType.LESS_EQUAL: binary_arithmetic_op(operator.le),
    TokenType.EQUAL_EQUAL: lambda op, left, right: is_equal(left, right),
    TokenType.BANG_EQUAL: lambda op, left, right: not is_equal(left, right),
    # comma: both sides already evaluated left to right, keep the right one
    TokenType.COMMA: lambda op, left, right: right,
}


# ============================================================================
# EXECUTION CONTEXT
# ============================================================================

def make_execution_context(output: Optional[TextIO] = None, debug: bool = False) -> Dict:
  """Create the per-run context: where 'print' writes and whether to trace"""
  return {
      'output': output if output is not None else sys.stdout,
      'debug': debug
  }


def trace(context: Dict, message: str) -> None:
  if context['debug']:
    print(message, file=sys.stderr)


def statement_token(stmt: Stmt) -> Token:
  """Token used to locate an error raised anywhere inside stmt"""
  token = node_token(stmt)
  if token is None:
    # only literals and groupings, which carry no position
    return Token(TokenType.NIL, "", None, 1)
  return token


# ============================================================================
# EXPRESSION EVALUATION
# ============================================================================

def evaluate(expr: Expr, env: Environment, context: Optional[Dict] = None) -> Any:
  """Evaluate an expression against the active environment"""
  if context is None:
    context = make_execution_context()

  trace(context, f"Evaluating: {type(expr).__name__}")

  if isinstance(expr, Literal):
    return expr.value
  elif isinstance(expr, Grouping):
    return evaluate(expr.expression, env, context)
  elif isinstance(expr, Unary):
    return eval_unary(expr, env, context)
  elif isinstance(expr, Binary):
    return eval_binary(expr, env, context)
  elif isinstance(expr, Logical):
    return eval_logical(expr, env, context)
  elif isinstance(expr, Conditional):
    return eval_conditional(expr, env, context)
  elif isinstance(expr, Variable):
    return env.get(expr.name)
  elif isinstance(expr, Assign):
    return eval_assign(expr, env, context)

  raise TypeError(f"Unknown expression node: {type(expr).__name__}")


def eval_unary(expr: Unary, env: Environment, context: Dict) -> Any:
  right = evaluate(expr.right, env, context)

  if expr.operator.type == TokenType.BANG:
    return not is_truthy(right)

  # MINUS
  check_number_operand(expr.operator, right)
  return -right


def eval_binary(expr: Binary, env: Environment, context: Dict) -> Any:
  """Evaluate both operands, left first, then apply the operator"""
  left = evaluate(expr.left, env, context)
  right = evaluate(expr.right, env, context)

  op_func = BINARY_OPERATORS[expr.operator.type]
  return op_func(expr.operator, left, right)


def eval_logical(expr: Logical, env: Environment, context: Dict) -> Any:
  """Short-circuit 'and' / 'or', returning the deciding operand itself"""
  left = evaluate(expr.left, env, context)

  if expr.operator.type == TokenType.OR:
    if is_truthy(left):
      return left
  elif not is_truthy(left):
    return left

  return evaluate(expr.right, env, context)


def eval_conditional(expr: Conditional, env: Environment, context: Dict) -> Any:
  if is_truthy(evaluate(expr.condition, env, context)):
    return evaluate(expr.if_true, env, context)
  return evaluate(expr.if_false, env, context)


def eval_assign(expr: Assign, env: Environment, context: Dict) -> Any:
  value = evaluate(expr.value, env, context)
  env.assign(expr.name, value)
  return value


# ============================================================================
# STATEMENT EXECUTION
# ============================================================================

def execute(stmt: Stmt, env: Environment, context: Optional[Dict] = None) -> Optional[BreakSignal]:
  """
  Execute one statement.
  Returns a BreakSignal when a 'break' was executed and not yet consumed by a
  loop, None on normal completion. Runtime errors propagate as LoxRuntimeError.
  """
  if context is None:
    context = make_execution_context()

  trace(context, f"Executing: {type(stmt).__name__}")

  if isinstance(stmt, Expression):
    evaluate(stmt.expression, env, context)
  elif isinstance(stmt, Print):
    value = evaluate(stmt.expression, env, context)
    context['output'].write(stringify(value) + "\n")
  elif isinstance(stmt, Var):
    value = None
    if stmt.initializer is not None:
      value = evaluate(stmt.initializer, env, context)
    env.define(stmt.name.lexeme, value)
  elif isinstance(stmt, Block):
    return execute_block(stmt.statements, Environment(env), context)
  elif isinstance(stmt, If):
    return exec_if(stmt, env, context)
  elif isinstance(stmt, While):
    return exec_while(stmt, env, context)
  elif isinstance(stmt, Break):
    return BreakSignal(stmt.keyword)
  else:
    raise TypeError(f"Unknown statement node: {type(stmt).__name__}")

  return None


def execute_block(statements, block_env: Environment, context: Dict) -> Optional[BreakSignal]:
  """Run statements in order inside block_env, stopping at the first break"""
  for statement in statements:
    signal = execute(statement, block_env, context)
    if signal is not None:
      return signal
  return None


def exec_if(stmt: If, env: Environment, context: Dict) -> Optional[BreakSignal]:
  if is_truthy(evaluate(stmt.condition, env, context)):
    return execute(stmt.then_branch, env, context)
  elif stmt.else_branch is not None:
    return execute(stmt.else_branch, env, context)
  return None


def exec_while(stmt: While, env: Environment, context: Dict) -> None:
  """Loop while the condition is truthy; a break from the body ends this loop only"""
  while is_truthy(evaluate(stmt.condition, env, context)):
    signal = execute(stmt.body, env, context)
    if signal is not None:
      trace(context, f"Break at line {signal.token.line}")
      break
  return None


# ============================================================================
# PROGRAM EVALUATION
# ============================================================================

def interpret(
    statements: List[Stmt],
    env: Environment,
    reporter: Optional[ErrorReporter] = None,
    output: Optional[TextIO] = None,
    debug: bool = False
) -> None:
  """
  Execute top-level statements in order.
  The first runtime error is reported and aborts the remaining statements;
  bindings committed by earlier statements stay in env.
  """
  if reporter is None:
    reporter = ErrorReporter(stream=sys.stderr)
  context = make_execution_context(output, debug)

  for statement in statements:
    try:
      signal = execute(statement, env, context)
    except LoxRuntimeError as e:
      reporter.runtime_error(e)
      return
    except RecursionError:
      reporter.runtime_error(LoxRuntimeError(statement_token(statement), "Stack overflow."))
      return
    if signal is not None:
      reporter.runtime_error(LoxRuntimeError(signal.token, "'break' used outside of a loop."))
      return


class LoxInterpreter:
  """Interpreter session owning the global environment across runs"""

  def __init__(self, debug: bool = False, output: Optional[TextIO] = None,
               reporter: Optional[ErrorReporter] = None):
    self.debug = debug
    self.output = output
    self.reporter = reporter if reporter is not None else ErrorReporter(stream=sys.stderr)
    self.global_env = Environment()

  def interpret(self, statements: List[Stmt], reporter: Optional[ErrorReporter] = None) -> None:
    interpret(statements, self.global_env, reporter or self.reporter, self.output, self.debug)

  def evaluate(self, expr: Expr) -> Any:
    """Evaluate a single expression in the global scope; errors propagate"""
    return evaluate(expr, self.global_env, make_execution_context(self.output, self.debug))


# ============================================================================
# FACTORY FUNCTIONS
# ============================================================================

def create_interpreter(debug: bool = False, output: Optional[TextIO] = None,
                       reporter: Optional[ErrorReporter] = None) -> LoxInterpreter:
  """Factory function returning an interpreter"""
  return LoxInterpreter(debug=debug, output=output, reporter=reporter)


def create_debug_interpreter(output: Optional[TextIO] = None) -> LoxInterpreter:
  """Factory function returning a debug interpreter"""
  return create_interpreter(debug=True, output=output)
