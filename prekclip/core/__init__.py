"""
Core utilities shared across the PrekClip API.

This package hosts configuration (env vars, paths), password hashing,
logging setup and the per-IP rate limiter. Services depend on these
primitives instead of reading the environment themselves.
"""
