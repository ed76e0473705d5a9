"""
Test configuration for the Lox interpreter tests
"""

import io
import pytest
import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from error_handling import ErrorReporter
from environment import Environment
from main import run_source


@pytest.fixture
def reporter():
  """A fresh reporter with no diagnostics"""
  return ErrorReporter()


@pytest.fixture
def run():
  """Run source through scan, parse and interpret; returns (printed text, reporter)"""
  def _run(source, env=None):
    output = io.StringIO()
    reporter = ErrorReporter(source)
    run_source(source, env if env is not None else Environment(), output, reporter)
    return output.getvalue(), reporter

  return _run


@pytest.fixture
def examples_dir():
  """Directory holding the example .lox programs"""
  return project_root / "examples"
