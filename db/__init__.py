"""
Database bootstrap for local NRTS environments.

The application server owns runtime access to MongoDB. This package only covers
repo-level operations that run when a fresh store comes up:
- Settings for reaching the store
- The sample Crown Land application record
- The idempotent seeder and its CLI (`python -m db.seed`)
"""
