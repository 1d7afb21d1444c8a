"""Command-line interface adapters.

Provides commands for managing teams, tasks and assignments from an
interactive prompt.
"""
