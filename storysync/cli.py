#!/usr/bin/env python3
"""storysync CLI entrypoint."""

import argparse
import json
import logging
import sys
from pathlib import Path

from storysync.lib.config import SyncConfig, load_config
from storysync.lib.hints import render_compaction_context
from storysync.lib.validate import Invalid, parse_todo_payload
from storysync.pm.stories import list_stories, load_story, normalize_story_id
from storysync.workflow.fsm import InvalidTransition
from storysync.workflow.sync import on_story_loaded, on_todos_written
from storysync.workflow.tracker import StoryTracker, create_tracker


def get_project(args) -> tuple[Path, SyncConfig, StoryTracker]:
    """Resolve project dir, load its config and restore the tracker."""
    project_dir = Path(args.project).resolve()
    if not project_dir.is_dir():
        print(f"ERROR: Project directory not found: {project_dir}", file=sys.stderr)
        sys.exit(2)

    config = load_config(project_dir)
    tracker = create_tracker(project_dir, config.state_file, config.history_limit)
    return project_dir, config, tracker


def cmd_load(args):
    project_dir, config, tracker = get_project(args)
    story_id = normalize_story_id(args.story_id)
    if story_id is None:
        print(f"ERROR: Not a story id: {args.story_id}", file=sys.stderr)
        return 2

    loaded = load_story(config.stories_path(project_dir), story_id)
    if loaded is None:
        print(f"ERROR: Story {story_id} not found in {config.stories_path(project_dir)}", file=sys.stderr)
        return 1

    story_file, content = loaded
    if story_file.has_multiple_matches:
        print(
            f"NOTE: Using {story_file.filename}, also found: {', '.join(story_file.alternative_files)}",
            file=sys.stderr,
        )
    result = on_story_loaded(tracker, config, story_id, content)

    if args.json:
        print(json.dumps({
            "storyId": story_id,
            "taskCount": result.task_count,
            "todos": [t.to_dict() for t in result.todos],
            "hint": result.hint,
        }, indent=2, ensure_ascii=False))
    elif result.hint:
        print(result.hint)
    else:
        print(f"Story {story_id} loaded (todo sync {'on' if config.todo_sync else 'off'})")
    return 0


def cmd_write(args):
    project_dir, config, tracker = get_project(args)

    try:
        if args.file == "-":
            payload = json.load(sys.stdin)
        else:
            payload = json.loads(Path(args.file).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        print(f"ERROR: Could not read todo list: {e}", file=sys.stderr)
        return 2

    parsed = parse_todo_payload(payload)
    if isinstance(parsed, Invalid):
        print(f"ERROR: Invalid todo list: {parsed.reason}", file=sys.stderr)
        return 2

    report = on_todos_written(tracker, config, config.stories_path(project_dir), parsed.value)
    if report is None:
        print("Todo sync disabled")
        return 0

    print(json.dumps(report.to_dict(), indent=2))
    return 0


def cmd_list(args):
    project_dir, config, tracker = get_project(args)
    current = tracker.get_current_story()
    story_ids = list_stories(config.stories_path(project_dir))
    if not story_ids:
        print(f"No stories in {config.stories_path(project_dir)}")
        return 0

    for story_id in story_ids:
        marker = "*" if current and current.id == story_id else " "
        print(f"{marker} {story_id}")
    return 0


def cmd_status(args):
    _, _, tracker = get_project(args)
    context = tracker.get_current_story_context()
    print(context if context else "No current story")
    return 0


def cmd_set_status(args):
    _, _, tracker = get_project(args)
    story_id = normalize_story_id(args.story_id) or args.story_id

    try:
        tracker.update_story_status(story_id, args.status)
    except (ValueError, InvalidTransition) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    print(f"Story {story_id}: {args.status}")
    return 0


def cmd_context(args):
    project_dir, config, tracker = get_project(args)
    context = render_compaction_context(tracker, config.stories_path(project_dir))
    if context:
        print(context, end="")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="storysync", description="Sync story checkboxes with an assistant todo list")
    parser.add_argument("--project", "-p", default=".", help="Project directory (default: cwd)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    p_load = subparsers.add_parser("load", help="Load a story and seed the todo list")
    p_load.add_argument("story_id", help="Story id, e.g. 2.3 or story-2-3")
    p_load.add_argument("--json", action="store_true", help="Print todos as JSON")
    p_load.set_defaults(func=cmd_load)

    p_write = subparsers.add_parser("write", help="Apply an assistant todo list to story checkboxes")
    p_write.add_argument("file", help="JSON todo list file, or - for stdin")
    p_write.set_defaults(func=cmd_write)

    p_list = subparsers.add_parser("list", help="List stories in the stories directory")
    p_list.set_defaults(func=cmd_list)

    p_status = subparsers.add_parser("status", help="Show the current story")
    p_status.set_defaults(func=cmd_status)

    p_set = subparsers.add_parser("set-status", help="Update a story's status")
    p_set.add_argument("story_id")
    p_set.add_argument("status", choices=["in_progress", "completed", "blocked", "needs_review"])
    p_set.set_defaults(func=cmd_set_status)

    p_context = subparsers.add_parser("context", help="Print session context for compaction")
    p_context.set_defaults(func=cmd_context)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
