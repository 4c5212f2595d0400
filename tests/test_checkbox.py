"""Tests for storysync.lib.checkbox module."""

import logging

import pytest

from storysync.lib.checkbox import find_checkbox_line, set_checkbox
from storysync.lib.taskparse import parse_story_tasks, tasks_to_todos

STORY = """# Story 2.3: Authentication

## Acceptance Criteria

- [ ] AC1: Users can login with email
- [ ] AC2: Password is hashed

## Tasks / Subtasks

- [ ] Task 1: Setup auth module
  - [ ] Subtask 1.1: Create folder structure
- [x] Task 2: Implement login
"""


@pytest.fixture
def story_path(tmp_path):
    path = tmp_path / "story-2-3.md"
    path.write_text(STORY)
    return path


class TestFindCheckboxLine:
    """Test find_checkbox_line function."""

    def test_hint_is_correct(self, story_path):
        """A correct hint should be returned as-is."""
        assert find_checkbox_line(story_path, "[2.3ΔAC2] AC2: Password is hashed", 5) == 5

    def test_finds_after_lines_inserted_within_radius(self, story_path):
        """Lines inserted above should be followed within the radius."""
        todos = tasks_to_todos(parse_story_tasks(STORY, "2.3"))
        target = todos[3]  # Subtask 1.1, line 10

        inserted = "\n".join(f"Note line {i}" for i in range(8))
        story_path.write_text(STORY.replace("## Tasks / Subtasks", inserted + "\n## Tasks / Subtasks"))

        line = find_checkbox_line(story_path, target.content, 10)
        assert line == 18
        assert "Subtask 1.1" in story_path.read_text().split("\n")[line]

    def test_finds_after_lines_removed(self, story_path):
        """Lines removed above should be followed."""
        story_path.write_text(STORY.replace("# Story 2.3: Authentication\n\n", ""))
        assert find_checkbox_line(story_path, "[2.3ΔTask2] Task 2: Implement login", 11) == 9

    def test_full_scan_beyond_radius(self, story_path):
        """Drift past the radius should fall back to a full scan."""
        padding = "\n".join("filler" for _ in range(50))
        story_path.write_text(STORY.replace("## Tasks / Subtasks", padding + "\n## Tasks / Subtasks"))

        line = find_checkbox_line(story_path, "Task 2: Implement login", 11, radius=15)
        assert line == 61

    def test_nearest_candidate_wins(self, tmp_path):
        """The candidate nearest the hint should win."""
        path = tmp_path / "story-1-1.md"
        lines = ["## Tasks"] + ["- [ ] Write tests"] + ["filler"] * 6 + ["- [ ] Write tests"]
        path.write_text("\n".join(lines) + "\n")

        assert find_checkbox_line(path, "Write tests", 7) == 8

    def test_none_hint_scans_file(self, story_path):
        """No hint should scan the whole file."""
        assert find_checkbox_line(story_path, "Password is hashed", None) == 5

    def test_out_of_range_hint(self, story_path):
        """A hint past the end of file should still search."""
        assert find_checkbox_line(story_path, "Create folder structure", 999) == 10

    def test_rejects_non_checkbox_line(self, story_path):
        """Matching text on a non-checkbox line should not count."""
        assert find_checkbox_line(story_path, "Story 2.3: Authentication", 0) is None

    def test_not_found(self, story_path):
        """Unknown text should return None."""
        assert find_checkbox_line(story_path, "Deploy to production cluster", 4) is None

    def test_missing_file(self, tmp_path, caplog):
        """A missing file should return a miss."""
        caplog.set_level(logging.WARNING)
        assert find_checkbox_line(tmp_path / "nope.md", "Anything", 0) is None
        assert "Failed to read story file" in caplog.text


class TestSetCheckbox:
    """Test set_checkbox function."""

    def test_checks_unchecked(self, story_path):
        """An unchecked box should be checked."""
        assert set_checkbox(story_path, 4, True) is True
        assert story_path.read_text().split("\n")[4] == "- [x] AC1: Users can login with email"

    def test_unchecks_checked(self, story_path):
        """A checked box should be unchecked."""
        assert set_checkbox(story_path, 11, False) is True
        assert story_path.read_text().split("\n")[11] == "- [ ] Task 2: Implement login"

    def test_uppercase_x(self, tmp_path):
        """[X] should count as checked."""
        path = tmp_path / "s.md"
        path.write_text("- [X] Done\n")
        assert set_checkbox(path, 0, False) is True
        assert path.read_text() == "- [ ] Done\n"

    def test_indented_subtask(self, story_path):
        """Indented subtasks should keep their indentation."""
        assert set_checkbox(story_path, 10, True) is True
        assert story_path.read_text().split("\n")[10] == "  - [x] Subtask 1.1: Create folder structure"

    def test_already_in_state_is_noop(self, story_path):
        """A box already in the target state should not be rewritten."""
        before = story_path.stat().st_mtime_ns
        assert set_checkbox(story_path, 11, True) is False
        assert story_path.read_text() == STORY
        assert story_path.stat().st_mtime_ns == before

    def test_only_target_line_changes(self, story_path):
        """Only the target line should change."""
        set_checkbox(story_path, 5, True)
        before = STORY.split("\n")
        after = story_path.read_text().split("\n")
        assert len(before) == len(after)
        assert [i for i, (a, b) in enumerate(zip(before, after)) if a != b] == [5]

    def test_preserves_crlf(self, tmp_path):
        """CRLF line endings should survive the edit."""
        path = tmp_path / "crlf.md"
        path.write_bytes(b"## Tasks\r\n- [ ] One\r\n- [ ] Two\r\n")
        assert set_checkbox(path, 2, True) is True
        assert path.read_bytes() == b"## Tasks\r\n- [ ] One\r\n- [x] Two\r\n"

    def test_invalid_line_number(self, story_path):
        """Out-of-range line numbers should return False."""
        assert set_checkbox(story_path, -1, True) is False
        assert set_checkbox(story_path, 999, True) is False

    def test_non_checkbox_line(self, story_path):
        """A non-checkbox line should not be modified."""
        assert set_checkbox(story_path, 0, True) is False
        assert story_path.read_text() == STORY

    def test_missing_file(self, tmp_path):
        """A missing file should return a miss."""
        assert set_checkbox(tmp_path / "nope.md", 0, True) is False
