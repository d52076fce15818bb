"""Validation checks, one module each.

A module defining a module-level `check = Check(...)` with a `@check.run`
function is picked up by px_forge.registry.discover(); its docstring is what
`px-forge help <check>` prints.
"""
