"""
Batch storage operations: readers, writers, repair and daily consolidation.
"""
