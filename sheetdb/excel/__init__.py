"""Spreadsheet reading, grid parsing and file analysis."""
