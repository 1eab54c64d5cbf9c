"""
Tycoon Arena

Server-authoritative property-trading board game: rules engine, session
coordination and persistence.
"""

__version__ = "0.3.0"
