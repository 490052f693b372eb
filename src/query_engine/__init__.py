"""Retrieval-augmented query engine answering student questions about a course."""
