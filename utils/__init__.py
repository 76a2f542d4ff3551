"""
Shared helpers: packaging hierarchies, header text and batching.
"""
