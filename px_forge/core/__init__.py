"""px_forge.core — Foundation layer.

Colours and colour expressions, palettes, asset types and builtins, the
dependency graph, project documents, configuration, logging setup and report
formatting. Nothing here imports px_forge.render, px_forge.checks or the
pipeline (report.py refers to BuildResult for typing only).
Only stdlib and numpy are allowed here.
"""
