"""Routing — segment grammar, immutable route tree, and path matching.

The tree is built once at startup and shared read-only by every
navigation.
"""
