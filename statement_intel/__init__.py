"""
Statement Intelligence

Turns UK bank statement text into transactions, recurring payment
patterns and life-domain suggestions.
"""
__version__ = "0.1.0"
