"""Bookings app package.

This app owns the in-progress booking draft (priced from a property
snapshot and mirrored to encrypted client storage) and the submission flow
that turns a complete draft into a booking row in the remote store.
"""
