"""HTTP adapters.

Exposes the use cases as a small JSON API:
- /tasks: create, list, read, rename and complete tasks
- /teams: team CRUD
- /assignments: assign tasks and track progress
"""
