"""Properties app package.

Read-only access to listings in the remote store, used to capture the
property snapshot a booking draft is priced from.
"""
