"""
Field trial manager package: rebuilds the field trial search index, manages the
cached study documents and regenerates per-study Frictionless Data packages.

Modules expose structured interfaces for CLI-driven jobs and for embedding in a
hosting service.
"""

__all__ = [
    "cli",
    "config",
    "models",
    "services",
    "utils",
    "workflow",
]
