"""API routes for the file server."""
