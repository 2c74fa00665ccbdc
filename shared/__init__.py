"""
Shared Kernel

Base classes, value objects, the event bus and the infrastructure
(encryption, client-side storage, remote store client) used by every app.
"""
