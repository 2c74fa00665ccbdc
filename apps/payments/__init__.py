"""Payments app package.

Card helpers, stored payment methods with a default, and wallet top-up
requests. Nothing here settles money; top-ups are recorded as pending.
"""
