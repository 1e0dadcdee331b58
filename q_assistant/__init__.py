"""
q - an AI-powered terminal command assistant.

Turns a natural language request into a shell command, explains it and,
once confirmed, runs it.
"""

__version__ = "0.1.0"
