"""
Command-line interface for gopick.

Discovers Go tests (including table-driven and nested subtests), lets the user
pick one and runs it with ``go test``, ``dlv`` or as a benchmark. Every run is
recorded so it can be repeated later.
"""

import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

import click

from gopick.benchmarks import BenchmarkStore
from gopick.config import DiscoveryConfig, UserConfig
from gopick.discovery import DiscoveryMode, TestCase, collect_tests, discover_directory
from gopick.exceptions import GopickError
from gopick.history import HistoryEntry, append_entry, last_entry, load_entries, rerun
from gopick.runner import (
    RunOptions,
    build_benchmark_command,
    build_test_command,
    debug_test,
    execute,
    show_reports,
)
from gopick.utils import render_list, render_tree, to_json

# Configure logging
logging.basicConfig(
    level=logging.WARNING,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

HISTORY_PAGE = 20


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging, including skipped subtests')
@click.option('--config', 'config_path', type=click.Path(dir_okay=False, path_type=Path), default=None,
              help='Path to the config file (default: user config dir)')
@click.pass_context
def cli(ctx, verbose: bool, config_path: Optional[Path]):
    """
    gopick - find Go tests and subtests, pick one, run it.

    Subtests launched with t.Run from string literals, nested closures and
    table-driven loops are listed individually.
    """
    ctx.ensure_object(dict)

    if verbose:
        logging.getLogger('gopick').setLevel(logging.DEBUG)
        logger.debug("Debug logging enabled")

    ctx.obj['verbose'] = verbose
    ctx.obj['user_config'] = UserConfig.load(config_path)


def _discovery_config(ctx, strict: bool = False) -> DiscoveryConfig:
    return DiscoveryConfig(verbose=ctx.obj.get('verbose', False), strict=strict)


def _discover(directory: Path, mode: DiscoveryMode, config: DiscoveryConfig,
              workers: Optional[int] = None) -> List[TestCase]:
    results = discover_directory(directory, mode, config, workers=workers)
    for result in results:
        if not result.ok:
            click.echo(f"Skipped {result.path}: {result.error}", err=True)
    return collect_tests(results)


def select_test(tests: Sequence[TestCase], label: str, filter_text: str = '') -> TestCase:
    """Let the user pick one test, narrowed by a case-insensitive substring."""
    needle = filter_text.lower()
    candidates = [t for t in tests if needle in t.qualified_name.lower()]
    if not candidates:
        raise click.ClickException(f"No tests match '{filter_text}'")
    if len(candidates) == 1:
        return candidates[0]

    for number, test in enumerate(candidates, start=1):
        click.echo(f"{number:>4}  {test.qualified_name}  ({test.source_file}:{test.source_line})")
    choice = click.prompt(label, type=click.IntRange(1, len(candidates)))
    return candidates[choice - 1]


def _finish(ctx, passed: bool) -> None:
    if not passed:
        ctx.exit(1)


@cli.command('list')
@click.argument('directory', default='.', type=click.Path(exists=True, path_type=Path))
@click.option('--benchmarks', '-b', is_flag=True, help='List benchmarks instead of tests')
@click.option('--format', 'output_format', type=click.Choice(['text', 'tree', 'json']), default='text',
              help='Output format')
@click.option('--strict', is_flag=True, help='Fail a file on constructs discovery does not recognise')
@click.option('--workers', type=int, default=None, help='Discover files on this many threads')
@click.pass_context
def list_tests(ctx, directory: Path, benchmarks: bool, output_format: str, strict: bool, workers: Optional[int]):
    """List the tests (or benchmarks) defined under DIRECTORY."""
    mode = DiscoveryMode.BENCHMARKS if benchmarks else DiscoveryMode.TESTS
    tests = _discover(directory, mode, _discovery_config(ctx, strict), workers)

    if output_format == 'json':
        click.echo(to_json(tests, indent=2))
        return
    if not tests:
        click.echo(f"No {mode.value} found in the directory")
        return
    click.echo(render_tree(tests) if output_format == 'tree' else render_list(tests))


@cli.command()
@click.argument('directory', default='.', type=click.Path(exists=True, path_type=Path))
@click.option('--select', '-s', 'select_one', is_flag=True, help='Pick a single test or subtest to run')
@click.option('--filter', 'filter_text', default='', help='Only offer tests whose name contains this text')
@click.option('--quiet', '-q', is_flag=True, help='Do not pass -v to go test')
@click.option('--debug', '-d', is_flag=True, help='Run the picked test under dlv')
@click.option('--cover', is_flag=True, help='Collect coverage and open the HTML report')
@click.option('--cpu', is_flag=True, help='Write and summarise a CPU profile')
@click.option('--mem', is_flag=True, help='Write and summarise a memory profile')
@click.pass_context
def run(ctx, directory: Path, select_one: bool, filter_text: str, quiet: bool, debug: bool,
        cover: bool, cpu: bool, mem: bool):
    """Run the tests under DIRECTORY, or one picked test with --select."""
    user_config: UserConfig = ctx.obj['user_config']
    try:
        test = None
        if select_one or debug or filter_text:
            tests = _discover(directory, DiscoveryMode.TESTS, _discovery_config(ctx))
            if not tests:
                click.echo("No tests found in the directory")
                return
            test = select_test(tests, "Select a test", filter_text)

        if debug:
            outcome = debug_test(test)
            append_entry(user_config.history_file, HistoryEntry.from_command(outcome.command, outcome.passed))
            _finish(ctx, outcome.passed)
            return

        options = RunOptions(quiet=quiet, cover=cover, cpu_profile=cpu, mem_profile=mem)
        command = build_test_command(test, directory, options=options)
        outcome = execute(command, colorize_output=user_config.colorize_output)
        append_entry(user_config.history_file, HistoryEntry.from_command(command, outcome.passed))
        show_reports(command)
    except GopickError as e:
        raise click.ClickException(str(e)) from e
    _finish(ctx, outcome.passed)


@cli.command()
@click.argument('directory', default='.', type=click.Path(exists=True, path_type=Path))
@click.option('--filter', 'filter_text', default='', help='Only offer benchmarks whose name contains this text')
@click.option('--all', 'run_all', is_flag=True, help='Run every benchmark under DIRECTORY')
@click.option('--benchmem', is_flag=True, help='Report memory allocations')
@click.option('--cpu', is_flag=True, help='Write and summarise a CPU profile')
@click.option('--mem', is_flag=True, help='Write and summarise a memory profile')
@click.pass_context
def bench(ctx, directory: Path, filter_text: str, run_all: bool, benchmem: bool, cpu: bool, mem: bool):
    """Pick a benchmark under DIRECTORY and run it; results are stored."""
    user_config: UserConfig = ctx.obj['user_config']
    try:
        test = None
        if not run_all:
            benchmarks = _discover(directory, DiscoveryMode.BENCHMARKS, _discovery_config(ctx))
            if not benchmarks:
                click.echo("No benchmarks found in the directory")
                return
            test = select_test(benchmarks, "Select a benchmark", filter_text)

        options = RunOptions(bench_mem=benchmem, cpu_profile=cpu, mem_profile=mem)
        command = build_benchmark_command(test, directory, options=options)
        outcome = execute(command, colorize_output=user_config.colorize_output)
        if outcome.passed:
            key = test.qualified_name if test is not None else str(directory.resolve())
            BenchmarkStore(user_config.benchmark_store).record(key, "\n".join(outcome.output))
        show_reports(command)
    except GopickError as e:
        raise click.ClickException(str(e)) from e
    _finish(ctx, outcome.passed)


@cli.command('rerun')
@click.pass_context
def rerun_last(ctx):
    """Run the last command again."""
    user_config: UserConfig = ctx.obj['user_config']
    try:
        entry = last_entry(user_config.history_file)
        outcome = rerun(entry, colorize_output=user_config.colorize_output)
    except GopickError as e:
        raise click.ClickException(str(e)) from e
    _finish(ctx, outcome.passed)


@cli.command()
@click.option('--list', 'list_only', is_flag=True, help='Print the history without running anything')
@click.pass_context
def history(ctx, list_only: bool):
    """Pick a command from the run history and run it again."""
    user_config: UserConfig = ctx.obj['user_config']
    try:
        entries = load_entries(user_config.history_file)[-HISTORY_PAGE:]
        if not entries:
            click.echo("No commands in history")
            return
        for number, entry in enumerate(entries, start=1):
            click.echo(f"{number:>4}  {entry}")
        if list_only:
            return
        choice = click.prompt("Select a command", type=click.IntRange(1, len(entries)))
        outcome = rerun(entries[choice - 1], colorize_output=user_config.colorize_output)
    except GopickError as e:
        raise click.ClickException(str(e)) from e
    _finish(ctx, outcome.passed)


@cli.command()
@click.argument('key', required=False)
@click.option('--raw', is_flag=True, help='Show every parsed result row, not only the summary')
@click.pass_context
def results(ctx, key: Optional[str], raw: bool):
    """Show stored benchmark results for KEY (a benchmark name or directory)."""
    store = BenchmarkStore(ctx.obj['user_config'].benchmark_store)
    keys = store.keys()
    if not keys:
        click.echo("No benchmarks found")
        return
    if key is None:
        for number, name in enumerate(keys, start=1):
            click.echo(f"{number:>4}  {name}")
        key = keys[click.prompt("Select a benchmark to view", type=click.IntRange(1, len(keys))) - 1]
    if key not in keys:
        raise click.ClickException(f"No runs stored for '{key}'")

    frame = store.frame(key) if raw else store.summary(key)
    click.echo(frame.to_string(index=False))


def main():
    """Console script entry point."""
    try:
        cli(obj={})
    except KeyboardInterrupt:
        click.echo("No Test Selected")
        sys.exit(0)


if __name__ == '__main__':
    main()
