"""Narrative report generation over upload samples."""
