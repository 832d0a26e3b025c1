"""Exceptions that end the current interactive loop."""


class ChatError(Exception):
    """Fatal error: transport, stream, terminal or session failure."""


class SessionError(ChatError):
    """The session file could not be read, parsed or written."""
