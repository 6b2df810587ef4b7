"""
Shared error handling package.

Centralizes error classification and rendering so that every failure,
whichever layer raised it, ends in one responder.
"""
