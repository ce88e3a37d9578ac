"""
Command construction and execution for ``go test``, benchmarks and ``dlv``.

Building a command is pure: it turns a chosen ``TestCase`` into an argument
list and working directory. Running it is a separate step, so commands can be
inspected, stored in the run history and replayed.
"""

from __future__ import annotations

import logging
import os
import re
import shlex
import shutil
import subprocess
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Union

import click

from gopick.discovery.results import SEPARATOR, TestCase
from gopick.exceptions import GopickError, ToolNotFoundError
from gopick.paths import find_module_root, package_target, relative_to_module

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]

# go test -run with this filter matches no test, leaving only benchmarks.
NO_TESTS_FILTER = "^$"


def run_filter(qualified_name: str) -> str:
    """Name-anchored ``-run`` / ``-bench`` expression for one test.

    ``go test`` matches each slash-separated level separately and rewrites
    spaces in subtest names to underscores, so each segment is rewritten the
    same way, escaped and anchored.

    >>> run_filter("TestRoot/Case A")
    '^TestRoot$/^Case_A$'
    """
    segments = qualified_name.split(SEPARATOR)
    return SEPARATOR.join("^" + re.escape(s.replace(" ", "_")) + "$" for s in segments)


@dataclass
class RunOptions:
    """Flags that change how a test command is built."""

    quiet: bool = False
    cover: bool = False
    cpu_profile: bool = False
    mem_profile: bool = False
    bench_mem: bool = False


@dataclass
class GoCommand:
    """A command line plus the directory to run it in."""

    args: List[str]
    cwd: str
    cover_file: Optional[str] = None
    cpu_profile: Optional[str] = None
    mem_profile: Optional[str] = None

    def display(self) -> str:
        return " ".join(shlex.quote(a) for a in self.args)


@dataclass
class RunOutcome:
    passed: bool
    returncode: int
    output: List[str] = field(default_factory=list)
    command: Optional[GoCommand] = None


def _temp_file(name: str, tmp_dir: Optional[PathLike]) -> str:
    safe = re.sub(r"[^A-Za-z0-9_.-]+", "_", name) or "all"
    fd, path = tempfile.mkstemp(prefix=f"go-test_{safe}_", dir=tmp_dir)
    os.close(fd)
    return path


def _profile_args(command: GoCommand, name: str, options: RunOptions, tmp_dir: Optional[PathLike]) -> None:
    if options.cpu_profile:
        command.cpu_profile = _temp_file(name, tmp_dir)
        command.args += ["-cpuprofile", command.cpu_profile]
    if options.mem_profile:
        command.mem_profile = _temp_file(name, tmp_dir)
        command.args += ["-memprofile", command.mem_profile]


def build_test_command(
    test: Optional[TestCase],
    target: PathLike,
    module_root: Optional[PathLike] = None,
    options: Optional[RunOptions] = None,
    tmp_dir: Optional[PathLike] = None,
) -> GoCommand:
    """Build the ``go test`` command for one test, or every test under ``target``.

    Args:
        test: Test to run; None runs everything under ``target``
        target: File or directory the test lives in
        module_root: Module root; looked up from ``target`` when omitted
        options: Verbosity, coverage and profiling flags
        tmp_dir: Where coverage and profile files are created

    Returns:
        GoCommand to run from the module root

    Raises:
        ModuleRootNotFoundError: If ``target`` is not inside a Go module
    """
    options = options or RunOptions()
    if test is not None:
        target = test.source_file
    root = Path(module_root) if module_root is not None else find_module_root(target)

    args = ["go", "test"]
    if not options.quiet:
        args.append("-v")
    args.append(package_target(target, root, has_name=test is not None))
    if test is not None:
        args += ["-run", run_filter(test.qualified_name)]

    command = GoCommand(args=args, cwd=str(root))
    name = test.qualified_name if test is not None else ""
    if options.cover:
        command.cover_file = _temp_file(name, tmp_dir)
        command.args += ["-coverprofile", command.cover_file]
    _profile_args(command, name, options, tmp_dir)
    return command


def build_benchmark_command(
    test: Optional[TestCase],
    target: PathLike,
    module_root: Optional[PathLike] = None,
    options: Optional[RunOptions] = None,
    tmp_dir: Optional[PathLike] = None,
) -> GoCommand:
    """Build ``go test -bench`` for one benchmark, or all benchmarks under ``target``."""
    options = options or RunOptions()
    if test is not None:
        target = test.source_file
    root = Path(module_root) if module_root is not None else find_module_root(target)

    args = [
        "go", "test", "-v",
        package_target(target, root, has_name=test is not None),
        "-run", NO_TESTS_FILTER,
        "-bench", run_filter(test.qualified_name) if test is not None else ".",
    ]
    if options.bench_mem:
        args.append("-benchmem")

    command = GoCommand(args=args, cwd=str(root))
    _profile_args(command, test.qualified_name if test is not None else "", options, tmp_dir)
    return command


def debug_init_script(test: TestCase, module_root: PathLike) -> str:
    """dlv init script: break at the test and continue to it."""
    location = f"{relative_to_module(test.source_file, module_root)}:{test.source_line}"
    return f"b {location}\nc\n"


def build_debug_command(test: TestCase, import_path: str, module_root: PathLike,
                        init_file: Optional[PathLike] = None) -> GoCommand:
    """Build ``dlv test`` for one test, with a breakpoint at its line when ``init_file`` is given."""
    args = ["dlv", "test"]
    if init_file is not None:
        args += ["--init", str(init_file)]
    args += [import_path, "--", "-test.run", run_filter(test.qualified_name)]
    return GoCommand(args=args, cwd=str(module_root))


def find_tool(name: str) -> str:
    """Absolute path of an executable on PATH.

    Raises:
        ToolNotFoundError: If it is not installed
    """
    path = shutil.which(name)
    if path is None:
        raise ToolNotFoundError(f"'{name}' was not found on PATH")
    return path


def resolve_import_path(package: str, module_root: PathLike) -> str:
    """Import path of a package directory, via ``go list``.

    Raises:
        GopickError: If go list fails (not a package, build errors)
    """
    try:
        result = subprocess.run(
            [find_tool("go"), "list", "-f", "{{.ImportPath}}", package],
            cwd=str(module_root),
            capture_output=True,
            text=True,
            check=True,
        )
    except subprocess.CalledProcessError as e:
        raise GopickError(f"go list failed for {package}: {e.stderr.strip()}") from e
    return result.stdout.strip()


def colorize(line: str) -> str:
    """Red for failing lines, green for passing ones."""
    if "FAIL" in line:
        return click.style(line, fg="red")
    if "PASS" in line:
        return click.style(line, fg="green")
    return line


def execute(command: GoCommand, colorize_output: bool = False,
            echo: Callable[[str], None] = click.echo) -> RunOutcome:
    """Run a command, streaming its output line by line.

    Args:
        command: Command to run
        colorize_output: Color PASS/FAIL lines
        echo: Where output lines are written

    Returns:
        RunOutcome; ``passed`` is True when the exit status is zero

    Raises:
        ToolNotFoundError: If the command's executable is missing
    """
    executable = find_tool(command.args[0])
    echo(f"Running {command.display()} @ {command.cwd}")
    logger.debug("Executing %s in %s", command.args, command.cwd)

    outcome = RunOutcome(passed=False, returncode=-1, command=command)
    with subprocess.Popen(
        [executable, *command.args[1:]],
        cwd=command.cwd,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
    ) as process:
        for line in process.stdout:
            line = line.rstrip("\n")
            outcome.output.append(line)
            echo(colorize(line) if colorize_output else line)
    outcome.returncode = process.returncode
    outcome.passed = process.returncode == 0
    return outcome


def show_reports(command: GoCommand, echo: Callable[[str], None] = click.echo) -> None:
    """Open the coverage report and print profile summaries, if any were requested."""
    go = find_tool("go")
    if command.cover_file:
        subprocess.run([go, "tool", "cover", f"-html={command.cover_file}"], cwd=command.cwd, check=False)
    for label, profile in (("CPU", command.cpu_profile), ("Memory", command.mem_profile)):
        if profile:
            echo(f"Wrote {label} Profile to: {profile}")
            subprocess.run([go, "tool", "pprof", "-top", profile], cwd=command.cwd, check=False)


def execute_interactive(command: GoCommand) -> RunOutcome:
    """Run a command attached to the terminal, as a debugger needs."""
    executable = find_tool(command.args[0])
    logger.debug("Executing %s in %s", command.args, command.cwd)
    completed = subprocess.run([executable, *command.args[1:]], cwd=command.cwd, check=False)
    return RunOutcome(passed=completed.returncode == 0, returncode=completed.returncode, command=command)


def debug_test(test: TestCase, module_root: Optional[PathLike] = None) -> RunOutcome:
    """Run one test under dlv, stopped at its source line.

    The init script is removed afterwards, so ``outcome.command`` is the same
    ``dlv test`` invocation without it, ready for the run history.
    """
    root = Path(module_root) if module_root is not None else find_module_root(test.source_file)
    import_path = resolve_import_path(package_target(test.source_file, root, has_name=True), root)

    fd, init_file = tempfile.mkstemp(prefix="go-test_")
    try:
        with os.fdopen(fd, "w") as f:
            f.write(debug_init_script(test, root))
        outcome = execute_interactive(build_debug_command(test, import_path, root, init_file))
    finally:
        os.remove(init_file)
    outcome.command = build_debug_command(test, import_path, root)
    return outcome
