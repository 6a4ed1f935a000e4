"""
Input/output interfaces for the improve/speak session.
"""

from ai_text_improver.io.text_interface import SessionInterface, TextInterface

__all__ = ["SessionInterface", "TextInterface"]
