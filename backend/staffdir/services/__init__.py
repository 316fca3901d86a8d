"""
StaffDir Backend: Services
===========================

    validator        named request schemas → ValidationResult
    password_hasher  bcrypt hashing off the event loop
    token_service    JWT issue/verify with an injectable clock
    auth_service     registration and login
    employee_service employee CRUD, WriteResult → exceptions
"""
