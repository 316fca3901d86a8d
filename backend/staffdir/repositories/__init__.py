# Repositories package init
"""
StaffDir Backend: Repositories Layer
=====================================

What:  Data access for the two durable tables.
How:   Every statement is a SQLAlchemy construct with bound parameters; no
       query text is ever assembled from user input.

Repository Inventory:
    - CredentialStore:     credentials table (find by email, insert)
    - EmployeeRepository:  employees table (create, list, get, replace, delete)

Writes report a WriteResult (see outcomes.py) instead of raising for
expected outcomes such as a duplicate email or a missing row.
"""
