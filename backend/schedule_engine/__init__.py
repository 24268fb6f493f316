"""
Recurrence and rule-resolution engine for scheduled maintenance tasks.
"""

__version__ = "0.1.0"
