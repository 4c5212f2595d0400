"""
Story task parser for storysync.

Extracts checkbox tasks from story markdown and projects them into
assistant todo items.
"""

from collections.abc import Mapping

from storysync.lib.constants import CHECKBOX_RE, DEFAULT_SECTION_ALIASES, HEADING_RE
from storysync.lib.identity import encode_id, encode_prefix
from storysync.lib.types import Priority, Section, Task, TodoItem, TodoStatus

SECTION_DEFAULT_PRIORITY = {
    Section.ACCEPTANCE_CRITERIA: Priority.HIGH,
    Section.TASKS: Priority.MEDIUM,
    Section.IMPLEMENTATION_NOTES: Priority.MEDIUM,
}


def resolve_aliases(overrides: Mapping[str, str] | None = None) -> dict[str, str]:
    """Layer caller overrides on top of the default heading aliases.

    The defaults are never modified. Override keys are lowercased; values
    must be section tokens ("ac", "tasks", "impl-notes").
    """
    aliases = dict(DEFAULT_SECTION_ALIASES)
    if overrides:
        for heading, section in overrides.items():
            Section(section)  # reject unknown section tokens early
            aliases[heading.strip().lower()] = section
    # Longest alias first so "tasks / subtasks" wins over "tasks"
    return dict(sorted(aliases.items(), key=lambda kv: len(kv[0]), reverse=True))


def _match_section(heading: str, aliases: Mapping[str, str]) -> Section | None:
    text = heading.strip().lower()
    for alias, section in aliases.items():
        if text.startswith(alias):
            return Section(section)
    return None


def detect_priority(text: str, section: Section) -> Priority:
    """Derive priority from explicit markers in the task text, else the section default."""
    lower = text.lower()

    if "priority: critical" in lower or "critical:" in lower:
        return Priority.HIGH
    if "priority: high" in lower:
        return Priority.HIGH
    if "priority: medium" in lower:
        return Priority.MEDIUM
    if "priority: low" in lower:
        return Priority.LOW

    return SECTION_DEFAULT_PRIORITY[section]


def parse_story_tasks(
    content: str,
    story_id: str,
    aliases: Mapping[str, str] | None = None,
) -> list[Task]:
    """Parse story markdown and return its checkbox tasks in document order.

    Only checkboxes under a recognized H2 section count. Any other H2
    heading leaves section mode, so stray checkboxes further down are ignored.

    Args:
        content: Raw story markdown
        story_id: Normalized story id ("2.3")
        aliases: Optional heading alias overrides, see resolve_aliases()
    """
    section_aliases = resolve_aliases(aliases)
    tasks = []
    current_section = None
    section_index = 0

    for lineno, line in enumerate(content.split("\n")):
        heading_match = HEADING_RE.match(line)
        if heading_match:
            current_section = _match_section(heading_match.group(1), section_aliases)
            section_index = 0
            continue

        if current_section is None:
            continue

        checkbox_match = CHECKBOX_RE.match(line)
        if not checkbox_match:
            continue

        section_index += 1
        indent, check_state, text = checkbox_match.groups()

        tasks.append(Task(
            story_id=story_id,
            section=current_section,
            section_index=section_index,
            line_number=lineno,
            content=text.strip(),
            checked=check_state.lower() == "x",
            priority=detect_priority(text, current_section),
            indent=len(indent),
        ))

    return tasks


def task_to_todo(task: Task) -> TodoItem:
    prefix = encode_prefix(task.story_id, task.section, task.section_index)
    status = TodoStatus.COMPLETED if task.checked else TodoStatus.PENDING
    return TodoItem(
        id=encode_id(task.story_id, task.section, task.line_number),
        content=f"{' ' * task.indent}{prefix} {task.content}",
        status=status.value,
        priority=task.priority.value,
    )


def tasks_to_todos(tasks: list[Task]) -> list[TodoItem]:
    """Project parsed tasks into todo items, preserving order and indentation."""
    return [task_to_todo(task) for task in tasks]
