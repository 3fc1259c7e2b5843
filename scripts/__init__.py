"""Command-line scripts for tabula.

The repository root is on pytest's ``pythonpath`` so tests can import
these modules as ``scripts.<name>``.
"""
