#!/usr/bin/env python3
"""
Test runner for distcalc.

Usage:
    python run_tests.py [selection] [-v] [-x] [-k EXPRESSION]

Selections:
    all          - every test (default)
    fast         - everything except tests that start worker processes
    distributed  - partition, protocol and MPI tests plus the multi-process runs
    coverage     - every test with a terminal coverage report
"""

import argparse
import subprocess
import sys

SELECTIONS = {
    "all": [],
    "fast": ["-m", "not slow"],
    "distributed": ["tests/unit/distributed", "tests/integration/test_distributed_local.py"],
    "coverage": ["--cov=distcalc", "--cov-report=term-missing"],
}


def main() -> int:
    parser = argparse.ArgumentParser(description="Run the distcalc test suite")
    parser.add_argument("selection", nargs="?", default="all", choices=sorted(SELECTIONS))
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    parser.add_argument("-x", "--stop-on-first-failure", action="store_true", help="Stop on first failure")
    parser.add_argument("-k", "--keyword", help="Run tests matching given keyword expression")
    args = parser.parse_args()

    cmd = [sys.executable, "-m", "pytest", *SELECTIONS[args.selection]]
    if args.verbose:
        cmd.append("-v")
    if args.stop_on_first_failure:
        cmd.append("-x")
    if args.keyword:
        cmd.extend(["-k", args.keyword])

    print(f"Running {args.selection} tests: {' '.join(cmd)}")
    return subprocess.run(cmd).returncode


if __name__ == "__main__":
    sys.exit(main())
