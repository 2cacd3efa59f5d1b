#!/usr/bin/env python3
"""
Development tasks for graphsynth.

    python dev_tasks.py <command> [extra args]

Extra arguments are forwarded to the underlying tool for ``test`` and
``example``. Set GRAPHSYNTH_TEST_DATABASE_URL to run the SQL backend tests
against a real database instead of in-memory SQLite.
"""

import os
import shutil
import subprocess
import sys

SOURCES = "graphsynth tests examples"


def run_command(command, check=True):
    print(f"Running: {command}")
    result = subprocess.run(command, shell=True, check=check)
    return result.returncode == 0


def clean():
    print("Cleaning build artifacts...")
    for path in ["build", "dist", ".pytest_cache", ".mypy_cache", "htmlcov", ".coverage"]:
        if os.path.isdir(path):
            shutil.rmtree(path, ignore_errors=True)
        elif os.path.exists(path):
            os.remove(path)
    for name in os.listdir("."):
        if name.endswith(".egg-info"):
            shutil.rmtree(name, ignore_errors=True)
    for root, dirs, _files in os.walk("."):
        if "__pycache__" in dirs:
            shutil.rmtree(os.path.join(root, "__pycache__"), ignore_errors=True)
    print("Clean completed.")


def format_code(*_args):
    run_command(f"isort {SOURCES}")
    run_command(f"black {SOURCES}")


def lint(*_args):
    ok = run_command("mypy graphsynth --ignore-missing-imports", check=False)
    ok = run_command(f"flake8 --max-line-length 120 {SOURCES}", check=False) and ok
    if not ok:
        print("Linting failed.")
        sys.exit(1)
    print("Linting passed.")


def test(*args):
    extra = " ".join(args)
    ok = run_command(f"pytest tests/ -v --cov=graphsynth --cov-report=term-missing {extra}".strip(), check=False)
    sys.exit(0 if ok else 1)


def example(*args):
    run_command(f"{sys.executable} examples/basic_example.py {' '.join(args)}".strip())


def build(*_args):
    clean()
    run_command(f"{sys.executable} -m build")
    run_command(f"{sys.executable} -m twine check dist/*")


def install_dev(*_args):
    run_command(f"{sys.executable} -m pip install -e .[dev,test]")


COMMANDS = {
    "clean": lambda *_a: clean(),
    "format": format_code,
    "lint": lint,
    "test": test,
    "example": example,
    "build": build,
    "install-dev": install_dev,
}


def main():
    if len(sys.argv) < 2 or sys.argv[1] not in COMMANDS:
        print(__doc__)
        print("Commands: " + ", ".join(COMMANDS))
        sys.exit(1)
    COMMANDS[sys.argv[1]](*sys.argv[2:])


if __name__ == "__main__":
    main()
