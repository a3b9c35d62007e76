"""
Commands - CLI command implementations.

Each module holds one or more top-level commands:
- info:     Connection state, peers, block number, gas price
- accounts: List, create, delete and unlock accounts
- send:     Send ether between node accounts
"""
