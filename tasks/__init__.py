"""tasks/ -- Per-user task records and the rules for changing them.

Layer rule: tasks/ imports only stdlib and third-party libraries.
It does NOT import from api/ or auth/.
"""
