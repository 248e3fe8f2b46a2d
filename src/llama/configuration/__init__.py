"""Configuration — ordered configuration tree and INI reader."""

from llama.configuration.ini import read_ini
from llama.configuration.tree import Configuration, ConfigurationCursor, array_merge_recursive

__all__ = ["Configuration", "ConfigurationCursor", "array_merge_recursive", "read_ini"]
