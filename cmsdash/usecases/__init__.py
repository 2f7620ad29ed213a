"""Use-case layer for live collection screens.

Each module coordinates domain objects and the document store port without
performing transport I/O directly, preserving MVVM + Hexagonal boundaries.
"""
