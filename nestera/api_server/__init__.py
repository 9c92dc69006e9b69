"""
API server package — HTTP/JSON interface over the ledger.

Exposes every ledger operation to clients. Caller authentication is done by
the fronting gateway; requests carry the authorized principals in a header.
"""
