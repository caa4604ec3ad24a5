"""Load job orchestration, progress display and summary rendering."""
