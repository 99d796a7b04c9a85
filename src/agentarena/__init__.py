"""
Agent Arena: AI-driven personas exchanging narrative turns until one player remains.
"""

__version__ = "0.1.0"
