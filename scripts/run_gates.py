#!/usr/bin/env python3
"""Run the s3filestore quality gates without requiring GNU make.

Any gate failure stops execution and returns a non-zero exit code.

Usage:
    python scripts/run_gates.py            # Run all gates
    python scripts/run_gates.py format     # Check formatting only
    python scripts/run_gates.py lint       # Run only lint
    python scripts/run_gates.py typecheck  # Run only typecheck
    python scripts/run_gates.py test       # Run only test
"""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).parent.parent


def run_command(name: str, cmd: list[str], cwd: Path | None = None) -> None:
    """Run a command, raising subprocess.CalledProcessError on non-zero exit."""
    print(f"\n{'=' * 60}")
    print(f"Running: {name}")
    print(f"Command: {' '.join(cmd)}")
    print("=" * 60)

    subprocess.run(cmd, cwd=cwd or REPO_ROOT, check=True)

    print(f"PASSED: {name}")


def gate_format() -> None:
    """Run ruff format in check mode."""
    run_command("Format (ruff)", ["ruff", "format", "--check", "."])


def gate_lint() -> None:
    """Run ruff check."""
    run_command("Lint (ruff)", ["ruff", "check", "."])


def gate_typecheck() -> None:
    """Run mypy type checking."""
    run_command(
        "Typecheck (mypy)",
        [sys.executable, "-m", "mypy", "src/s3filestore", "--ignore-missing-imports"],
    )


def gate_test() -> None:
    """Run pytest."""
    run_command("Test (pytest)", [sys.executable, "-m", "pytest", "-q"])


GATES = {
    "format": gate_format,
    "lint": gate_lint,
    "typecheck": gate_typecheck,
    "test": gate_test,
}


def run_all_gates() -> None:
    """Run all gates in sequence, stopping at the first failure."""
    print("\n" + "=" * 60)
    print("s3filestore gate runner")
    print("=" * 60)

    for gate_fn in GATES.values():
        gate_fn()

    print("\n" + "=" * 60)
    print("ALL GATES PASSED")
    print("=" * 60)


def main() -> int:
    try:
        if len(sys.argv) > 1:
            gate_name = sys.argv[1].lower()
            if gate_name in GATES:
                GATES[gate_name]()
                return 0
            elif gate_name in ("all", "check"):
                run_all_gates()
                return 0
            else:
                print(f"Unknown gate: {gate_name}")
                print(f"Available gates: {', '.join(GATES.keys())}, all")
                return 1

        run_all_gates()
        return 0

    except subprocess.CalledProcessError as e:
        print(f"\nGATE FAILED (exit code {e.returncode})")
        return e.returncode


if __name__ == "__main__":
    sys.exit(main())
