"""Application package for the student roster backend.

This package exposes the models, scopes, resources, repository and
service modules used by the FastAPI application in `roster.main`.
Individual modules contain the concrete implementations and
documentation.
"""
