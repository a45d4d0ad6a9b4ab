"""Explore definition loading and schema introspection."""
