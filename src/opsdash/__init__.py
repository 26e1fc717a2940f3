"""Summary: opsdash package.

Importance: Credential-gated sync layer for the operations dashboard.
Alternatives: Ship adapters as separate packages per provider.
"""
