"""security tests for Taskboard."""
