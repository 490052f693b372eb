"""Course transcript RAG pipeline.

This package ingests course transcripts: it splits them into overlapping
chunks, indexes them in a vector database, and tracks each course through
its processing states.
"""
