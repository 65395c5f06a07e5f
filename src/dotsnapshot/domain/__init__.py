"""Domain layer — hook actions, result records, and the error taxonomy.

Pure models with no I/O. Infrastructure and services depend on this layer.
"""
