"""Typer sub-command groups for the studytrack CLI."""
