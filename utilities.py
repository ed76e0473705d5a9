"""
Utilities module for the Lox interpreter
Value semantics shared by the interpreter and the pretty-printer
"""

from typing import Any, Callable

from tokens import Token
from error_handling import LoxRuntimeError


# ==================== TYPE CHECKING UTILITIES ====================

def is_number(value: Any) -> bool:
  """
  Check if value is a Lox number

  bool is a subclass of int in Python, so it is excluded explicitly.
  """
  return isinstance(value, float) and not isinstance(value, bool)


def type_name(value: Any) -> str:
  """
  Runtime type name of a value, for error messages

  Examples:
    type_name(None) -> "nil"
    type_name(1.0) -> "number"
  """
  if value is None:
    return "nil"
  if isinstance(value, bool):
    return "boolean"
  if is_number(value):
    return "number"
  if isinstance(value, str):
    return "string"
  return type(value).__name__


# ==================== VALUE SEMANTICS ====================

def is_truthy(value: Any) -> bool:
  """nil and false are falsy, every other value is truthy"""
  if value is None:
    return False
  if isinstance(value, bool):
    return value
  return True


def is_equal(left: Any, right: Any) -> bool:
  """
  Lox equality: never coerces across runtime types

  Examples:
    is_equal(None, None) -> True
    is_equal(None, False) -> False
    is_equal(1.0, "1") -> False
  """
  if left is None:
    return right is None
  if type_name(left) != type_name(right):
    return False
  return left == right


def stringify(value: Any) -> str:
  """
  Text written by 'print'

  Examples:
    stringify(None) -> "nil"
    stringify(3.0) -> "3"
    stringify(2.5) -> "2.5"
  """
  if value is None:
    return "nil"
  if isinstance(value, bool):
    return "true" if value else "false"
  if is_number(value):
    text = str(value)
    if text.endswith(".0"):
      text = text[:-2]
    return text
  return str(value)


# ==================== ERROR MESSAGE BUILDERS ====================

def check_number_operand(operator: Token, operand: Any) -> None:
  if not is_number(operand):
    raise LoxRuntimeError(operator, "Operand must be a number.")


def check_number_operands(operator: Token, left: Any, right: Any) -> None:
  if not (is_number(left) and is_number(right)):
    raise LoxRuntimeError(operator, "Operands must be numbers.")


# ==================== BINARY OPERATION FACTORIES ====================

def binary_arithmetic_op(op: Callable[[float, float], Any]) -> Callable[[Token, Any, Any], Any]:
  """
  Factory for binary operations that require two numbers

  Args:
    op: Python operator function (e.g., operator.sub)

  Returns:
    Function of (operator_token, left, right) that checks both operands and applies op

  Examples:
    subtract = binary_arithmetic_op(operator.sub)
    subtract(minus_token, 3.0, 1.0) -> 2.0
  """
  def arithmetic(operator: Token, left: Any, right: Any) -> Any:
    check_number_operands(operator, left, right)
    return op(left, right)

  return arithmetic


def lox_add(operator: Token, left: Any, right: Any) -> Any:
  """'+' adds two numbers or concatenates two strings"""
  if is_number(left) and is_number(right):
    return left + right
  if isinstance(left, str) and isinstance(right, str):
    return left + right
  raise LoxRuntimeError(operator, "Operands must be two numbers or two strings.")


def lox_divide(operator: Token, left: Any, right: Any) -> float:
  """'/' on numbers; dividing by zero is an error rather than infinity"""
  check_number_operands(operator, left, right)
  if right == 0:
    raise LoxRuntimeError(operator, "Division by zero.")
  return left / right
