"""Ember: lexer and parser for a small expression-oriented language."""

__version__ = "0.1.0"
