"""Revue: spaced-repetition scheduling for flashcard study."""

from revue.consts import VERSION

__version__ = VERSION
