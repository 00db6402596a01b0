"""Structured store files."""
