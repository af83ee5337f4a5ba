"""
Feature modules for Live Team Scoring.

Each feature is a self-contained module with:
- models.py - Dataclasses
- schemas.py - Pydantic schemas
- service.py - Business logic
- catalog.py - Static content access (optional)
"""
