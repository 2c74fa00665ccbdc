"""Core app package.

Shared guards for untrusted input: sanitizers, the form validator and the
submission rate limiter.
"""
