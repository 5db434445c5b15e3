"""unit tests for Taskboard."""
