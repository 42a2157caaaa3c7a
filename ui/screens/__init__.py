"""UI screen modules for the guided session app."""

from .guided_session_screen import GuidedSessionScreen

__all__ = ["GuidedSessionScreen"]
