# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Softball rules: base states, result catalogue, advancement and rule validation.

Submodules are imported directly (``from rules.advancement import
valid_outcomes``).  The package itself stays import-free so that the
top-level ``models`` and ``config`` modules can depend on its leaf modules.
"""
