"""Data loading helpers."""
