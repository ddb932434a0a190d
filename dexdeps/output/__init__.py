"""Console and file output for DexDeps scan results."""
