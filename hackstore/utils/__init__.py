"""
Generic utility functions shared across modules.

Includes the clock abstraction used for time fallbacks and logging setup.
"""
