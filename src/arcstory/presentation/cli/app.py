"""Console-driven play loop for arcstory projects."""
from __future__ import annotations

import argparse
from pathlib import Path
from typing import Callable, List, Sequence

from arcstory.core.config import RuntimeConfig, load_config
from arcstory.core.log import configure_logging
from arcstory.data.errors import DataError
from arcstory.data.paths import get_sample_project_path
from arcstory.data.repositories import ProjectRepository
from arcstory.presentation.cli.render import render_view
from arcstory.services import (
    CyclicGraphError,
    StoryService,
    format_issue,
    validate_project,
)

InputFn = Callable[[str], str]
OutputFn = Callable[[str], None]


_HELP = "Enter a choice number, 'b' to go back, 'r' to restart or 'q' to quit."


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="arcstory", description="Play an Arcweave-style project export.")
    parser.add_argument("project", nargs="?", help="Path to the project JSON (defaults to the bundled sample).")
    parser.add_argument("--seed", type=int, help="Seed for random() and roll().")
    parser.add_argument("--locale", help="Locale key for localized text fields.")
    parser.add_argument("--config", help="Path to a runtime config JSON file.")
    parser.add_argument("--validate", action="store_true", help="Validate the project and exit.")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Start the interactive CLI session."""
    args = build_parser().parse_args(argv)
    config = _resolve_config(args)
    configure_logging(config.log_level)
    project_path = Path(args.project) if args.project else get_sample_project_path()
    try:
        project = ProjectRepository(project_path, locale=config.locale).load()
    except DataError as exc:
        print(f"Could not load project: {exc}")
        return 1

    if args.validate:
        issues = validate_project(project)
        for issue in issues:
            print(format_issue(issue))
        errors = [issue for issue in issues if issue.severity == "ERROR"]
        print(f"{len(issues)} issue(s), {len(errors)} error(s).")
        return 1 if errors else 0

    service = StoryService(project, config=config)
    try:
        run_story_loop(service)
    except CyclicGraphError as exc:
        print(f"Project graph is malformed: {exc}")
        return 1
    except (EOFError, KeyboardInterrupt):
        print()
    print("Goodbye!")
    return 0


def _resolve_config(args: argparse.Namespace) -> RuntimeConfig:
    config = load_config(args.config)
    if args.seed is not None:
        config.seed = args.seed
    if args.locale:
        config.locale = args.locale
    return config


def run_story_loop(
    service: StoryService,
    input_fn: InputFn | None = None,
    output_fn: OutputFn | None = None,
) -> List[str]:
    """Play until the story ends or the player quits; returns visited element ids."""
    input_fn = input_fn or input
    output_fn = output_fn or print
    view = service.start()
    visited = [view.element_id]
    while True:
        output_fn("")
        for line in render_view(view):
            output_fn(line)
        if view.is_end:
            answer = input_fn("Play again? (y/n): ").strip().lower()
            if answer != "y":
                return visited
            view = service.restart()
            visited.append(view.element_id)
            continue
        command = input_fn("> ").strip().lower()
        if command == "q":
            return visited
        if command == "r":
            view = service.restart()
        elif command == "b":
            try:
                view = service.go_back()
            except ValueError as exc:
                output_fn(str(exc))
                continue
        elif command.isdigit() and 1 <= int(command) <= len(view.choices):
            view = service.choose(int(command) - 1)
        else:
            output_fn(_HELP)
            continue
        visited.append(view.element_id)
