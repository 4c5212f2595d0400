"""Tests for storysync.lib.taskparse module."""

import pytest

from storysync.lib.constants import DEFAULT_SECTION_ALIASES
from storysync.lib.taskparse import (
    detect_priority,
    parse_story_tasks,
    resolve_aliases,
    tasks_to_todos,
)
from storysync.lib.types import Priority, Section, Task


class TestParseStoryTasks:
    """Test parse_story_tasks function."""

    def test_tasks_section_checked_and_unchecked(self):
        content = "## Tasks / Subtasks\n- [ ] Implement login\n- [x] Add logout\n"
        tasks = parse_story_tasks(content, "2.3")

        assert len(tasks) == 2
        assert [t.section_index for t in tasks] == [1, 2]
        assert [t.checked for t in tasks] == [False, True]
        assert [t.line_number for t in tasks] == [1, 2]
        assert all(t.section == Section.TASKS for t in tasks)
        assert all(t.priority == Priority.MEDIUM for t in tasks)
        assert tasks[0].content == "Implement login"

    def test_acceptance_criteria(self):
        content = """
# Story 2.3

## Acceptance Criteria

- [ ] AC1: Users can login with email
- [x] AC2: Password is hashed
- [ ] AC3: JWT token returned
"""
        tasks = parse_story_tasks(content, "2.3")

        assert len(tasks) == 3
        assert tasks[0].section == Section.ACCEPTANCE_CRITERIA
        assert tasks[0].content == "AC1: Users can login with email"
        assert tasks[1].checked is True
        assert tasks[2].section_index == 3

    def test_subtask_indent(self):
        content = """
## Tasks / Subtasks

- [ ] Task 1: Setup auth module
  - [ ] Subtask 1.1: Create folder structure
- [x] Task 2: Implement login
"""
        tasks = parse_story_tasks(content, "2.3")

        assert len(tasks) == 3
        assert tasks[0].indent == 0
        assert tasks[1].indent == 2
        assert tasks[2].checked is True

    def test_section_index_resets_per_section(self):
        content = """
## Acceptance Criteria
- [ ] AC1: Feature works
- [ ] AC2: Other feature

## Tasks / Subtasks
- [ ] Task 1: Implement feature

## Implementation Notes
- [ ] Fix: Security issue
"""
        tasks = parse_story_tasks(content, "2.3")

        assert [t.section for t in tasks] == [
            Section.ACCEPTANCE_CRITERIA,
            Section.ACCEPTANCE_CRITERIA,
            Section.TASKS,
            Section.IMPLEMENTATION_NOTES,
        ]
        assert [t.section_index for t in tasks] == [1, 2, 1, 1]

    def test_unknown_heading_leaves_section(self):
        content = """
## Acceptance Criteria
- [ ] AC1: Feature

## Dev Notes
Some notes here

- [ ] This is NOT a task
"""
        tasks = parse_story_tasks(content, "2.3")

        assert len(tasks) == 1
        assert tasks[0].content == "AC1: Feature"

    def test_checkboxes_before_any_section_ignored(self):
        content = "- [ ] Loose item\n## Tasks\n- [ ] Real task\n"
        tasks = parse_story_tasks(content, "1.1")
        assert [t.content for t in tasks] == ["Real task"]

    def test_heading_match_is_case_insensitive(self):
        content = "## TASKS / SUBTASKS\n- [ ] Shout\n"
        tasks = parse_story_tasks(content, "1.1")
        assert tasks[0].section == Section.TASKS

    def test_uppercase_x(self):
        tasks = parse_story_tasks("## Tasks\n- [X] Done with uppercase X\n", "2.3")
        assert tasks[0].checked is True

    def test_empty_content(self):
        assert parse_story_tasks("", "2.3") == []

    def test_section_without_checkboxes(self):
        content = "## Acceptance Criteria\n\n1. Users can login\n2. Password is hashed\n"
        assert parse_story_tasks(content, "2.3") == []

    def test_alias_override(self):
        content = "## Definition of Done\n- [ ] Docs updated\n"

        assert parse_story_tasks(content, "3.1") == []
        tasks = parse_story_tasks(content, "3.1", aliases={"Definition of Done": "ac"})
        assert len(tasks) == 1
        assert tasks[0].section == Section.ACCEPTANCE_CRITERIA

    def test_reparse_is_stable(self):
        content = "## Tasks\n- [ ] One\n  - [x] Two\n## Implementation Notes\n- [ ] Three\n"
        first = parse_story_tasks(content, "4.2")
        tasks_to_todos(first)
        assert parse_story_tasks(content, "4.2") == first


class TestResolveAliases:
    """Test resolve_aliases function."""

    def test_defaults_untouched_by_overrides(self):
        resolve_aliases({"checklist": "tasks"})
        assert "checklist" not in DEFAULT_SECTION_ALIASES

    def test_rejects_unknown_section(self):
        with pytest.raises(ValueError):
            resolve_aliases({"checklist": "bogus"})

    def test_longest_alias_first(self):
        keys = list(resolve_aliases())
        assert keys.index("tasks / subtasks") < keys.index("tasks")


class TestDetectPriority:
    """Test detect_priority function."""

    def test_explicit_markers(self):
        assert detect_priority("Fix security issue - Priority: Critical", Section.TASKS) == Priority.HIGH
        assert detect_priority("Critical: data loss", Section.TASKS) == Priority.HIGH
        assert detect_priority("Add validation - Priority: Medium", Section.ACCEPTANCE_CRITERIA) == Priority.MEDIUM
        assert detect_priority("Improve logging - Priority: Low", Section.IMPLEMENTATION_NOTES) == Priority.LOW
        assert detect_priority("priority: high thing", Section.TASKS) == Priority.HIGH

    def test_section_defaults(self):
        assert detect_priority("Some feature", Section.ACCEPTANCE_CRITERIA) == Priority.HIGH
        assert detect_priority("Some task", Section.TASKS) == Priority.MEDIUM
        assert detect_priority("Some finding", Section.IMPLEMENTATION_NOTES) == Priority.MEDIUM


class TestTasksToTodos:
    """Test tasks_to_todos function."""

    def test_prefix_and_status(self):
        content = "## Tasks / Subtasks\n- [ ] Implement login\n- [x] Add logout\n"
        todos = tasks_to_todos(parse_story_tasks(content, "2.3"))

        assert todos[0].content == "[2.3ΔTask1] Implement login"
        assert todos[1].content == "[2.3ΔTask2] Add logout"
        assert todos[0].status == "pending"
        assert todos[1].status == "completed"
        assert todos[0].id == "2.3:tasks:1"
        assert todos[0].priority == "medium"

    def test_section_labels(self):
        tasks = [
            Task("2.3", Section.ACCEPTANCE_CRITERIA, 1, 10, "AC task", False, Priority.HIGH),
            Task("2.3", Section.TASKS, 1, 20, "Regular task", False, Priority.MEDIUM),
            Task("2.3", Section.IMPLEMENTATION_NOTES, 1, 30, "Fix something", False, Priority.MEDIUM),
        ]
        todos = tasks_to_todos(tasks)

        assert todos[0].content.startswith("[2.3ΔAC1]")
        assert todos[1].content.startswith("[2.3ΔTask1]")
        assert todos[2].content.startswith("[2.3ΔFix1]")
        assert todos[2].id == "2.3:impl-notes:30"

    def test_preserves_indentation(self):
        task = Task("2.3", Section.TASKS, 2, 15, "Subtask 1.1", False, Priority.MEDIUM, indent=2)
        todo = tasks_to_todos([task])[0]
        assert todo.content == "  [2.3ΔTask2] Subtask 1.1"
