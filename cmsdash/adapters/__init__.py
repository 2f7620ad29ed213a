"""Adapter package for external I/O implementations.

Purpose:
    Collect concrete implementations of ``DocumentStorePort`` (Firestore REST,
    in-memory test double) together with their transport helpers.

Dependencies:
    ``firestore_rest`` and ``http_client`` depend on ``requests``; the memory
    store depends only on domain types.

Call context:
    Imported by ``cmsdash.app.controller`` for runtime wiring and by tests.
"""
