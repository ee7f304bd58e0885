"""Test package marker.

What:
  Marks ``tests`` as a package so pytest resolves the shared ``conftest``
  deterministically.

Invariants & Safety:
  - Importing ``tests`` has no side effects.
"""
