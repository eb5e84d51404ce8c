"""
WealthFlow - Source Package

A personal finance tracker for a single signed-in user: accounts,
stock holdings, income/expense transactions and a dashboard of
aggregated figures.

DESIGN PRINCIPLES:
1. Records live in the store; local state only changes via snapshots
2. Derived figures are recomputed from scratch on every snapshot
3. Balance updates are incremental, never rebuilt from history
4. AI price refresh is best-effort and never breaks the app
5. Storage and auth backends are swappable
"""

__version__ = "1.0.0"
__author__ = "WealthFlow Team"
