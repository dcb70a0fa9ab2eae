"""
Language-specific code generators.

This module contains generators for different programming languages.
"""

from .go import GoClientGenerator, create_generator

__all__ = ["GoClientGenerator", "create_generator"]
