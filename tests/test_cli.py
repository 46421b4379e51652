"""CLI tests for the metalox entry point.

Test cases live in cli/*.tests files. Format:

    === test name
    args: --verbose {script}
    program text or prompt input
    ---
    exit: 0
    stdout: one line of expected stdout
    stderr: one line of expected stderr
    stdout-contains: "keyword"
    stderr-contains: "keyword"
    stdout-empty: true
    stderr-empty: true
    ---

Directives in the input section:
    args:    CLI arguments (first line, required). The placeholder {script}
             is replaced by a file holding the remaining input lines; without
             it the remaining lines are fed to the prompt on stdin.

Repeated stdout:/stderr: lines accumulate and are compared against the whole
stream with its trailing newline removed.
"""

import os
import subprocess
import sys
from pathlib import Path

import pytest

from metalox import EXIT_OK, EXIT_USAGE
from metalox.cli import main

CLI_DIR = Path(__file__).parent / "cli"
ROOT_DIR = Path(__file__).parent.parent
SRC_DIR = ROOT_DIR / "src"


def parse_cli_test_file(path: Path) -> list[tuple[str, dict]]:
    """Parse a .tests file into (name, spec) tuples."""
    lines = path.read_text().split("\n")
    result: list[tuple[str, dict]] = []
    i = 0
    while i < len(lines):
        line = lines[i]
        if line.startswith("=== "):
            test_name = line[4:].strip()
            i += 1
            input_lines: list[str] = []
            while i < len(lines) and not lines[i].startswith("---"):
                input_lines.append(lines[i])
                i += 1
            if i < len(lines) and lines[i] == "---":
                i += 1
            expected_lines: list[str] = []
            while i < len(lines) and not lines[i].startswith("---"):
                expected_lines.append(lines[i])
                i += 1
            if i < len(lines) and lines[i] == "---":
                i += 1
            result.append((test_name, _parse_spec(input_lines, expected_lines)))
        else:
            i += 1
    return result


def _parse_spec(input_lines: list[str], expected_lines: list[str]) -> dict:
    spec: dict = {"args": [], "body": "", "stdout": None, "stderr": None, "assertions": []}
    body_start = 0
    if input_lines and input_lines[0].startswith("args:"):
        args_str = input_lines[0][5:].strip()
        spec["args"] = args_str.split() if args_str else []
        body_start = 1
    spec["body"] = "\n".join(input_lines[body_start:])

    stdout_lines: list[str] = []
    stderr_lines: list[str] = []
    for line in expected_lines:
        line = line.strip()
        if not line:
            continue
        if line.startswith("exit:"):
            spec["assertions"].append(("exit", int(line[5:].strip())))
        elif line.startswith("stdout:"):
            stdout_lines.append(line[7:].strip())
        elif line.startswith("stderr:"):
            stderr_lines.append(line[7:].strip())
        elif line.startswith("stdout-contains:"):
            spec["assertions"].append(("stdout-contains", line[16:].strip()))
        elif line.startswith("stderr-contains:"):
            spec["assertions"].append(("stderr-contains", line[16:].strip()))
        elif line.startswith("stdout-empty:"):
            spec["assertions"].append(("stdout-empty", None))
        elif line.startswith("stderr-empty:"):
            spec["assertions"].append(("stderr-empty", None))
    if stdout_lines:
        spec["assertions"].append(("stdout", "\n".join(stdout_lines)))
    if stderr_lines:
        spec["assertions"].append(("stderr", "\n".join(stderr_lines)))
    return spec


def discover_cli_tests() -> list[tuple[str, dict]]:
    """Find all CLI tests across .tests files."""
    results = []
    for test_file in sorted(CLI_DIR.glob("*.tests")):
        for name, spec in parse_cli_test_file(test_file):
            results.append((f"{test_file.stem}/{name}", spec))
    return results


def run_cli(spec: dict, workdir: Path) -> subprocess.CompletedProcess[bytes]:
    """Run the metalox CLI from a test spec."""
    args = list(spec["args"])
    stdin_data = b""
    if "{script}" in args:
        script = workdir / "main.lox"
        script.write_text(spec["body"] + "\n")
        args = [str(script) if a == "{script}" else a for a in args]
    else:
        stdin_data = spec["body"].encode()
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(
        p for p in (str(SRC_DIR), env.get("PYTHONPATH", "")) if p
    )
    env.pop("METALOX_LOG_LEVEL", None)
    cmd = [sys.executable, "-m", "metalox.cli", *args]
    return subprocess.run(
        cmd,
        input=stdin_data,
        capture_output=True,
        cwd=workdir,
        env=env,
    )


def check_assertions(
    result: subprocess.CompletedProcess[bytes], assertions: list[tuple]
) -> None:
    """Check all assertions against a CLI result."""
    stdout = result.stdout.decode(errors="replace")
    stderr = result.stderr.decode(errors="replace")
    for kind, value in assertions:
        if kind == "exit":
            assert result.returncode == value, (
                f"expected exit {value}, got {result.returncode}\nstderr: {stderr}"
            )
        elif kind == "stdout":
            assert stdout.rstrip("\n") == value, f"expected stdout {value!r}, got {stdout!r}"
        elif kind == "stderr":
            assert stderr.rstrip("\n") == value, f"expected stderr {value!r}, got {stderr!r}"
        elif kind == "stdout-contains":
            assert value in stdout, f"expected stdout to contain {value!r}, got {stdout!r}"
        elif kind == "stderr-contains":
            assert value in stderr, f"expected stderr to contain {value!r}, got {stderr!r}"
        elif kind == "stdout-empty":
            assert stdout == "", f"expected empty stdout, got {stdout[:200]!r}"
        elif kind == "stderr-empty":
            assert stderr == "", f"expected empty stderr, got {stderr!r}"


def pytest_generate_tests(metafunc):
    """Parametrize test_cli over all .tests files."""
    if "cli_spec" in metafunc.fixturenames:
        tests = discover_cli_tests()
        params = [pytest.param(spec, id=test_id) for test_id, spec in tests]
        metafunc.parametrize("cli_spec", params)


def test_cli(cli_spec: dict, tmp_path: Path) -> None:
    """Run a single CLI test case from .tests file."""
    result = run_cli(cli_spec, tmp_path)
    check_assertions(result, cli_spec["assertions"])


# ============================================================
# In-process entry point
# ============================================================


def test_main_runs_script(tmp_path, capsys):
    script = tmp_path / "hello.lox"
    script.write_text('var who = "world";\nprint "hello " + who;\n')
    assert main([str(script)]) == EXIT_OK
    captured = capsys.readouterr()
    assert captured.out == "hello world\n"
    assert captured.err == ""


def test_main_rejects_unreadable_encoding(tmp_path, capsys):
    script = tmp_path / "bad.lox"
    script.write_bytes(b"print \xff;")
    assert main([str(script)]) == 1
    assert "invalid utf-8" in capsys.readouterr().err


def test_prompt_exits_cleanly_at_end_of_input(monkeypatch, capsys):
    lines = iter(["var n = 20;", "n = n + 1;", "print n * 2;"])

    def fake_input(prompt):
        try:
            return next(lines)
        except StopIteration:
            raise EOFError from None

    monkeypatch.setattr("builtins.input", fake_input)
    assert main([]) == EXIT_OK
    assert capsys.readouterr().out == "42\n\n"


def test_main_rejects_second_script(capsys):
    assert main(["one.lox", "two.lox"]) == EXIT_USAGE
    assert capsys.readouterr().err == "metalox: unexpected argument 'two.lox'\n"
