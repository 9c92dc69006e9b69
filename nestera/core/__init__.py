"""
Core utilities — error taxonomy and checked arithmetic shared by every ledger module.
"""
