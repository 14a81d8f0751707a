"""Shared domain package for the Store Survey application.

This package contains the I/O-free core used by the backend Flask API:

- Document table (models.py) - SQLAlchemy model behind the document store
- Enums (enums.py) - Roles, question types, features and collection names
- Validation (validation.py, schemas.py) - Input validation, sanitization and pydantic models
- Access control (access.py) - Store, response and user permission predicates
- Ordering (ordering.py) - Resolution of ordered id references and reordering
- Analytics (analytics.py) - Per-question aggregation of survey responses
- Submission (submission.py) - Survey submission assembly and response reconstruction
- Export (export.py) - Long and wide tabular export to CSV and XLSX
"""
