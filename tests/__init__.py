"""
Test suite for the elastic-supply stable token

Contains:
- tests/unit/          : Unit tests for individual modules, public surface
                         and randomized invariant checks
"""
