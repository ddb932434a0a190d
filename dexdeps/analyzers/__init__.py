"""
DexDeps Analyzers
==================

Stages that run on loaded tables: internal/external classification,
reference assembly and reference-graph construction.
"""
