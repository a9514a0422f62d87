"""Async client SDK for a document database and a secrets vault."""
