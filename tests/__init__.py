"""Test package marker for the emlparse suites.

What:
  Marks ``tests`` as a package so pytest resolves the shared ``conftest``
  fixtures consistently for ``tests/unit`` and ``tests/e2e``.

Invariants & Safety:
  - The file must remain side-effect free so that importing ``tests`` never
    mutates environment state or test fixtures.
"""
