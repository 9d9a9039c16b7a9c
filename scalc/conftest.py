import io

import pytest

from scalc.config import Options
from scalc.engine import new_environment
from scalc.repl import REPL


@pytest.fixture
def env():
    return new_environment()


@pytest.fixture
def make_repl(env):
    """Build a REPL writing into StringIO buffers; returns (repl, out, err)."""
    def factory(**option_values):
        out, err = io.StringIO(), io.StringIO()
        repl = REPL(Options(files=[], **option_values), env, out=out, err=err)
        return repl, out, err
    return factory


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    outcome = yield
    report = outcome.get_result()
    if report.when == "call":
        print(f"TEST: {item.name} - {'PASSED' if report.passed else 'FAILED'}")
