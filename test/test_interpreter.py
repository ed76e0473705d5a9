"""
Interpreter tests for Lox
Evaluation rules, scoping, loops with break and runtime error handling
"""

import io
import pytest
from ast_nodes import Break, Grouping, Literal, Print
from environment import Environment
from error_handling import ErrorReporter
from interpreter import create_interpreter, evaluate, interpret, statement_token
from parsing import create_parser
from tokens import Token, TokenType


class TestArithmetic:
  """Numbers, strings and operator type rules"""

  @pytest.mark.parametrize("code,expected", [
      ("print 1 + 2;", "3"),
      ("print 7 / 2;", "3.5"),
      ("print 2 * 3 - 1;", "5"),
      ("print -(3);", "-3"),
      ("print 0.1 + 0.2;", "0.30000000000000004"),
      ("print 10;", "10"),
      ("print 1.5;", "1.5"),
      ('print "a" + "b";', "ab"),
      ("print 2 > 1;", "true"),
      ("print 2 >= 2;", "true"),
      ("print 1 < 1;", "false"),
      ("print 1 <= 1;", "true"),
  ])
  def test_values(self, run, code, expected):
    output, reporter = run(code)
    assert output == expected + "\n"
    assert not reporter.diagnostics

  @pytest.mark.parametrize("code,message", [
      ('print 1 + "x";', "Operands must be two numbers or two strings."),
      ("print nil + nil;", "Operands must be two numbers or two strings."),
      ("print 1 / 0;", "Division by zero."),
      ('print -"a";', "Operand must be a number."),
      ('print 1 < "a";', "Operands must be numbers."),
      ("print true * 2;", "Operands must be numbers."),
  ])
  def test_type_errors(self, run, code, message):
    output, reporter = run(code)
    assert output == ""
    assert reporter.had_runtime_error
    assert reporter.messages() == [f"{message}\n[line 1]"]


class TestTruthinessAndEquality:
  """Truthiness and cross-type equality"""

  @pytest.mark.parametrize("code,expected", [
      ("print !0;", "false"),
      ('print !"";', "false"),
      ("print !nil;", "true"),
      ("print !false;", "true"),
      ("print nil == nil;", "true"),
      ("print nil == false;", "false"),
      ('print 1 == "1";', "false"),
      ('print "a" == "a";', "true"),
      ("print true != false;", "true"),
      ("print 1 == true;", "false"),
      ("print 0 == false;", "false"),
  ])
  def test_values(self, run, code, expected):
    output, _ = run(code)
    assert output == expected + "\n"


class TestLogicalAndConditional:
  """Short-circuiting and branch selection"""

  @pytest.mark.parametrize("code,expected", [
      ('print nil or "x";', "x"),
      ('print "a" or "b";', "a"),
      ("print nil and 1;", "nil"),
      ("print 1 and 2;", "2"),
      ('print 1 ? "yes" : "no";', "yes"),
      ('print false ? "yes" : "no";', "no"),
      ("print true ? false ? 1 : 2 : 3;", "2"),
  ])
  def test_values(self, run, code, expected):
    output, _ = run(code)
    assert output == expected + "\n"

  def test_and_skips_right_operand(self, run):
    output, _ = run("var a = 1; false and (a = 2); print a;")
    assert output == "1\n"

  def test_or_skips_right_operand(self, run):
    output, _ = run("var a = 1; true or (a = 2); print a;")
    assert output == "1\n"

  def test_conditional_evaluates_one_branch(self, run):
    output, _ = run("var a = 0; true ? a = 1 : (a = 2); print a;")
    assert output == "1\n"

  def test_comma_evaluates_left_first(self, run):
    output, _ = run("var a = 1; print (a = 2, a + 1); print a;")
    assert output == "3\n2\n"


class TestScoping:
  """Variables, blocks and the environment chain"""

  def test_shadow_does_not_leak(self, run):
    output, _ = run("var x = 1; { var x = 2; print x; } print x;")
    assert output == "2\n1\n"

  def test_assignment_reaches_enclosing_scope(self, run):
    output, _ = run("var x = 1; { x = 2; } print x;")
    assert output == "2\n"

  def test_uninitialized_variable_is_nil(self, run):
    output, _ = run("var a; print a;")
    assert output == "nil\n"

  def test_redeclaration_replaces_binding(self, run):
    output, reporter = run("var a = 1; var a = 2; print a;")
    assert output == "2\n"
    assert not reporter.diagnostics

  def test_undefined_variable(self, run):
    _, reporter = run("print y;")
    assert reporter.messages() == ["Undefined variable 'y'.\n[line 1]"]

  def test_assignment_never_declares(self, run):
    env = Environment()
    _, reporter = run("y = 1;", env)
    assert reporter.had_runtime_error
    assert not env.contains("y")

  def test_block_scope_discarded_after_error(self, run):
    env = Environment()
    run('var a = "outer"; { var a = "inner"; print a + 1; }', env)
    output, _ = run("print a;", env)
    assert output == "outer\n"


class TestLoops:
  """while, desugared for, and break"""

  def test_while(self, run):
    output, _ = run("var i = 0; while (i < 3) { print i; i = i + 1; }")
    assert output == "0\n1\n2\n"

  def test_for(self, run):
    output, _ = run("for (var i = 0; i < 3; i = i + 1) print i;")
    assert output == "0\n1\n2\n"

  def test_for_loop_variable_is_scoped(self, run):
    _, reporter = run("for (var i = 0; i < 1; i = i + 1) {} print i;")
    assert reporter.messages() == ["Undefined variable 'i'.\n[line 1]"]

  def test_break_stops_loop(self, run):
    output, reporter = run(
        "var i; for (i = 0; i < 3; i = i + 1) { if (i == 1) break; print i; } print i;"
    )
    assert output == "0\n1\n"
    assert not reporter.diagnostics

  def test_break_only_leaves_innermost_loop(self, run):
    code = """
    var n = 0;
    while (n < 3) {
      var m = 0;
      while (true) {
        m = m + 1;
        if (m == 2) break;
      }
      n = n + 1;
      print m;
    }
    print n;
    """
    output, _ = run(code)
    assert output == "2\n2\n2\n3\n"

  def test_break_skips_increment(self, run):
    output, _ = run("var i; for (i = 0; true; i = i + 1) break; print i;")
    assert output == "0\n"

  def test_break_through_shadowing_blocks_restores_scope(self, run):
    code = """
    var a = "outer";
    while (true) {
      var a = "mid";
      {
        var a = "inner";
        break;
      }
    }
    print a;
    """
    output, reporter = run(code)
    assert output == "outer\n"
    assert not reporter.diagnostics

  def test_break_in_nested_loop_keeps_outer_loop_scope(self, run):
    env = Environment()
    code = """
    var a = "outer";
    var seen;
    for (var i = 0; i < 1; i = i + 1) {
      var a = "loop";
      while (true) { var a = "inner"; break; }
      seen = a;
    }
    """
    run(code, env)
    output, _ = run("print seen; print a;", env)
    assert output == "loop\nouter\n"


class TestProgramExecution:
  """Top-level driver behavior"""

  def test_runtime_error_aborts_remaining_statements(self, run):
    output, reporter = run("print 1;\nprint nil + 1;\nprint 2;")
    assert output == "1\n"
    assert reporter.diagnostics[0]['line'] == 2

  def test_bindings_before_error_are_kept(self, run):
    env = Environment()
    run("var a = 1; print a + nil; var b = 2;", env)
    assert env.contains("a")
    assert not env.contains("b")

  def test_syntax_error_skips_execution(self, run):
    output, reporter = run("print 1; print ;")
    assert output == ""
    assert reporter.had_error
    assert not reporter.had_runtime_error

  def test_lexical_error_skips_execution(self, run):
    output, reporter = run("print 1; @")
    assert output == ""
    assert reporter.had_error

  def test_top_level_break_is_reported(self):
    token = Token(TokenType.BREAK, "break", None, 4)
    output = io.StringIO()
    reporter = ErrorReporter()
    interpret([Print(Literal(1.0)), Break(token), Print(Literal(2.0))],
              Environment(), reporter, output)
    assert output.getvalue() == "1\n"
    assert reporter.messages() == ["'break' used outside of a loop.\n[line 4]"]

  def test_evaluate_expression(self):
    expr = create_parser().parse_expression("1 + 2 * 3")
    assert evaluate(expr, Environment()) == 7.0

  def test_interpreter_keeps_globals_between_runs(self):
    output = io.StringIO()
    lox = create_interpreter(output=output)
    parser = create_parser()
    lox.interpret(parser.parse_string("var a = 40;"))
    lox.interpret(parser.parse_string("print a + 2;"))
    assert output.getvalue() == "42\n"
    assert lox.evaluate(parser.parse_expression("a")) == 40.0
    assert not lox.reporter.diagnostics

  def test_print_defaults_to_stdout(self, capsys):
    interpret(create_parser().parse_string('print "hi";'), Environment())
    assert capsys.readouterr().out == "hi\n"

  def test_interpret_reports_to_stderr_by_default(self, capsys):
    interpret(create_parser().parse_string("print 1; print nil + 1;"), Environment())
    captured = capsys.readouterr()
    assert captured.out == "1\n"
    assert "Operands must be two numbers or two strings.\n[line 1]" in captured.err

  def test_interpreter_session_reports_to_stderr_by_default(self, capsys):
    lox = create_interpreter()
    lox.interpret(create_parser().parse_string("print missing;"))
    assert "Undefined variable 'missing'." in capsys.readouterr().err
    assert lox.reporter.had_runtime_error


class TestDeepEvaluation:
  """Evaluation deeper than the Python stack is a runtime error"""

  def test_long_operator_chain(self, run):
    code = "print " + " + ".join(["1"] * 5000) + ";\nprint 2;"
    output, reporter = run(code)
    assert output == ""
    assert reporter.messages() == ["Stack overflow.\n[line 1]"]
    assert not reporter.had_error

  def test_bindings_survive_overflow(self, run):
    env = Environment()
    run("var a = 1;\na = " + " + ".join(["a"] * 5000) + ";", env)
    output, reporter = run("print a;", env)
    assert output == "1\n"
    assert not reporter.diagnostics

  def test_overflow_inside_block_reports_line(self, run):
    code = "var x = 0;\n{\n  x = " + " - ".join(["1"] * 5000) + ";\n}"
    _, reporter = run(code)
    assert reporter.messages() == ["Stack overflow.\n[line 3]"]


class TestStatementToken:
  """Locating a statement for error reports"""

  def test_nearest_token(self):
    stmt = create_parser().parse_string("print 1 + 2 * 3;")[0]
    token = statement_token(stmt)
    assert (token.lexeme, token.line) == ("+", 1)

  def test_statement_without_tokens(self):
    token = statement_token(Print(Grouping(Literal(1.0))))
    assert token.line == 1
