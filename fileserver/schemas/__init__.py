"""Pydantic schemas for the file server endpoints."""
