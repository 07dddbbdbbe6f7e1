"""
Field codecs, entity schemas, and the flat-file repository.

Handles encoding typed records into delimiter-based lines, rewriting store
files durably, and decoding them back, plus the startup integrity check that
creates missing files and repairs header lines.
"""
