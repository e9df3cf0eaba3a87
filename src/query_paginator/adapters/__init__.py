"""Collaborator implementations (SQLAlchemy executor, Redis cache).

Import them from their modules; each pulls in its optional dependency.
"""
