"""SQLite persistence for tags and tasks."""
