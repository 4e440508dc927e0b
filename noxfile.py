import os
from pathlib import Path
import nox

# Reuse existing virtualenvs for faster runs
nox.options.reuse_existing_virtualenvs = True
# Default sessions when running "nox"
nox.options.sessions = ["lint", "tests"]

# Environment variables to propagate
PASSED_ENV_VARS = [
    "DATABASE_URL",
    "SECRET_KEY",
    "ADMIN_PASSWORD",
    "LOG_LEVEL",
    "REDIS_URL",
]


def _set_env(session):
    """
    Propagate database and test-related environment variables into the session.
    Also ensure the project root is on PYTHONPATH.
    """
    session.env["PYTHONPATH"] = str(Path.cwd())
    session.env["ENVIRONMENT"] = "testing"
    for var in PASSED_ENV_VARS:
        if var in os.environ:
            session.env[var] = os.environ[var]


@nox.session(name="lint")
def lint(session):
    """
    Code formatting, linting, and type-checks:
      - isort
      - black
      - flake8
      - mypy
    """
    _set_env(session)
    session.install("isort", "black", "flake8", "mypy")
    session.run("isort", "meetstake/", "tests/")
    session.run("black", "meetstake/", "tests/")
    session.run("flake8", "meetstake/", "tests/")
    session.run("mypy", "meetstake/")


@nox.session(name="tests")
def tests(session):
    """
    Run the test suite with coverage.
    Pass positional args to target specific tests.
    Usage:
      nox -s tests                                   # everything
      nox -s tests -- -m unit                        # unit tests only
      nox -s tests -- tests/concurrency              # threaded ledger tests
    """
    _set_env(session)
    session.install("-e", ".[test]")
    args = session.posargs or ["tests"]
    htmlcov_path = ".nox/htmlcov"
    session.run(
        "pytest",
        *args,
        "-vv",
        "--tb=short",
        "--cov=meetstake",
        "--cov-report=term-missing",
        "--cov-report=html:" + htmlcov_path,
        "--cov-report=xml",
        "--cov-fail-under=80",
    )
