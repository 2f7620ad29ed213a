"""Application composition layer for the dashboard.

Modules in this package load settings, own shared timers and wire adapters,
use cases and viewmodels together without placing business logic in pages.
"""
