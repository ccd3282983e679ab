"""Document store access.

This package talks to the remote CouchDB instance for unique identifiers.
It batches and shares identifier fetches across concurrent requests.
"""
