"""
Feature modules for the Campus Portal backend.

- auth: bearer-token validation and role gating
- challenge: human-presence widgets bound to page anchors
- identity: sign-in flows and the session bridge to profiles
- profiles: profile reconciliation, storage and role-claim propagation

A module exposes Protocols in ``interfaces.py``; other modules and the
API layer depend on those, and ``api.dependencies`` picks the concrete
implementations.
"""
