"""
StaffDir Backend: Application Package
======================================

What: Employee directory API with credential registration, bearer-token
      authorization, request validation, rate limiting and CRUD persistence.

Layering:

    ┌─────────────────────────────────────┐
    │        Middleware (pipeline)        │  ← rate limit, request id, logging, CORS
    ├─────────────────────────────────────┤
    │           Routes (API Layer)        │  ← HTTP concerns, auth dependency
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← validation, hashing, tokens, outcomes
    ├─────────────────────────────────────┤
    │      Repositories (Persistence)     │  ← bound-parameter SQLAlchemy queries
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
