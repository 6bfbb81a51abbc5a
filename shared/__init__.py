"""Shared code for the SiteSense bid package backend.

This package holds the pieces that do not depend on Flask:

- Database models (models.py) - SQLAlchemy declarative models and the clock
- Enums (enums.py) - Status values for packages, invites, bids and RFIs
- Validation utilities (validation.py, schemas.py) - Input validation and sanitization
- Compliance evaluator (compliance.py) - Subcontractor document status and scoring

Everything here can be used and tested without an application context.
"""
