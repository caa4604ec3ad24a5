"""SQLite loading: column-name normalization and table loader."""
