"""Core application for the EduHub backend.

This package contains the document model, the resource engine and its
per-collection hooks, the push dispatcher, and the route registrations
implementing the API contract expected by the front-end application.
"""
