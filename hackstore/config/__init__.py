"""
Configuration loading and validation for store paths and logging.

Provides strongly typed settings objects read from environment variables
(and an optional .env file) with upfront validation.
"""
