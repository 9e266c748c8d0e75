"""Collaborators that produce generated text for entities."""

from .base import GeneratorBase, get_generator

__all__ = ["GeneratorBase", "get_generator"]
