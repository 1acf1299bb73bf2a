"""
Workspace Organizer
===================

Keeps a PARA-style workspace tidy by sorting whatever lands in the inbox.

Features:
- Ordered regex rules map inbox entries to workspace folders
- Every move is journaled and can be undone
- A watcher cleans the inbox automatically once files stop changing
"""

__version__ = "0.1.0"
__author__ = "Dharshan"
