"""CLI Main Entry Point"""

import logging
import sys
import time
from pathlib import Path

from autocommit.config import Config, ConfigManager
from autocommit.errors import CommitWriteError, RepositoryError, StagingError
from autocommit.git import FileChangeSet, Workspace, find_repo_root, open_repository
from autocommit.llm import LLMError, get_backend
from autocommit.output import ProgressPrinter, Spinner, dim, print_box, print_error, print_success, print_warning
from autocommit.telemetry import TelemetryRecorder

from autocommit.cli.args import parse_args
from autocommit.cli.commands import display_config, list_models, run_setup, show_balance, show_stats
from autocommit.cli.utils import ask_stage_choice, clean_commit_message, describe_changes, select_paths

logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if not verbose:
        # GitPython logs command failures we already report ourselves
        logging.getLogger("git").setLevel(logging.ERROR)


def _apply_overrides(config: Config, args) -> Config:
    """CLI flags win over config files and environment."""
    return config.with_overrides(
        backend=args.backend,
        model=args.model,
        provider=args.provider,
        temperature=args.temperature,
        timing_enabled=True if args.time else None,
    )


def _resolve_stage(args, changes: FileChangeSet) -> str:
    if args.stage:
        return args.stage
    if not (changes.unstaged_modified or changes.untracked):
        return 'none'
    if not sys.stdin.isatty():
        return 'none'
    return ask_stage_choice()


def _generate(backend, config: Config, diff: str, telemetry: TelemetryRecorder):
    """Run the LLM call behind a spinner and time it."""
    t0 = time.monotonic()
    try:
        with Spinner(f"Generating commit message with {config.model}..."):
            return backend.generate(
                diff,
                config.instructions,
                config.model,
                provider=config.provider or None,
                temperature=config.temperature,
            )
    finally:
        telemetry.set_llm_time(time.monotonic() - t0)


def _push(workspace: Workspace) -> None:
    printer = ProgressPrinter()
    outcome = workspace.push(progress=printer)
    printer.finish()
    if outcome.success:
        print_success(outcome.message)
    else:
        print_warning(outcome.message)


def _commit_flow(args, config: Config, workspace: Workspace) -> int:
    """Classify, diff, generate, commit and optionally push.

    Returns:
        int: Exit code
    """
    changes = workspace.classify_changes()
    if changes.is_empty:
        print("No changes to commit")
        return 0

    for line in describe_changes(changes):
        print(line)

    stage = _resolve_stage(args, changes)
    paths = select_paths(changes, stage)
    logger.debug("Staging choice %r covers %d paths", stage, len(paths))
    diff = workspace.compose_diff(
        changes,
        include_untracked=(stage == 'all'),
        staged_only=(stage == 'none'),
    )
    if not diff.strip():
        print("No changes to commit" if stage != 'none' else "Nothing staged. Stage files or run with --add.")
        return 0

    backend = get_backend(config.backend, config.api_key_for())

    with TelemetryRecorder(config, dry_run=args.dry_run, backend=backend, repo_root=workspace.root) as telemetry:
        result = _generate(backend, config, diff, telemetry)
        telemetry.add(result)

        message = clean_commit_message(result.content)
        if not message:
            print_error("The model returned an empty commit message")
            return 1

        print()
        print_box(message)

        if args.dry_run:
            print(dim("Dry run: nothing was committed."))
            return 0

        commit = workspace.stage_and_commit(paths, message)
        print_success(commit.output)

        should_push = config.auto_push if args.push is None else args.push
        if should_push:
            _push(workspace)

    return 0


def main(argv=None) -> int:
    """Main entry point for the CLI."""
    args = parse_args(argv)
    _configure_logging(args.verbose)

    root = find_repo_root()
    manager = ConfigManager(root)

    # Commands that exit early
    if args.display_config:
        return display_config(manager)
    if args.setup:
        return run_setup(manager)
    if args.stats:
        return show_stats()
    if args.repo_stats:
        if root is None:
            print_error("Not inside a git repository")
            return 1
        return show_stats(root)

    config = _apply_overrides(manager.load(), args)

    if args.models:
        return list_models(config)
    if args.balance:
        return show_balance(config)

    try:
        with open_repository(root or Path.cwd()) as repo:
            return _commit_flow(args, config, Workspace(repo))
    except (RepositoryError, StagingError, CommitWriteError, LLMError) as e:
        print_error(str(e))
        return 1
    except KeyboardInterrupt:
        print()
        print_error("Interrupted")
        return 130


def run() -> None:
    sys.exit(main())
