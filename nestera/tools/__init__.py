"""Operator tools (run with python -m nestera.tools.<name>)."""
