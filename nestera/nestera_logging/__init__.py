"""
Structured logging for Nestera.

JSON logs with timestamp, event_type, principal and amounts.
Use get_logger() in all ledger modules for aggregation-friendly output.
"""

from nestera.nestera_logging.logger import bind_principal, get_logger

__all__ = ["bind_principal", "get_logger"]
