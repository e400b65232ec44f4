"""
Configuration System

Configuration Priority (highest to lowest):
    1. Programmatic (passed to RohDBConfig())
    2. Environment variables (ROHDB_* prefix)
    3. Built-in defaults

A TOML file can be loaded explicitly with RohDBConfig.from_file().
"""

from rohdb.config.settings import RohDBConfig

__all__ = ["RohDBConfig"]
