"""
Core domain layer: chunking, chunk store, adaptive retrieval and tools.
"""
