"""contracts tests for Taskboard."""
