"""
cert_registry — certificate management for a payments-switch participant registry.

Participants submit X.509 certificates, reviewers approve or reject them under
maker-checker separation, and downstream services fetch the approved public
keys. Requests and approved certificates are stored as JSONB documents in
PostgreSQL.

Built on the Railway-Oriented Programming (ROP) framework for
explicit, composable, functional error handling.
"""

__version__ = "0.1.0"
