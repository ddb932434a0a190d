"""
DexDeps Core
=============

DEX image facade, multi-image scan engine, result models and the error
hierarchy.
"""
