"""
                Kitchen Display System

Order-management backend for a single-location restaurant:
front-of-house creates orders, the kitchen advances them, and
managers pull daily summaries and CSV exports.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
