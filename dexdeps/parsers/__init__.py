"""
DexDeps Parsers
================

Binary decoding of DEX images: primitive reader, header decoder, index
table loaders, and resolution of input files to DEX byte sources.
"""
