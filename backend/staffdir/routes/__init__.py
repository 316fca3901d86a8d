# Routes package init
"""
StaffDir Backend: API Routes Package
=====================================

Route Inventory:
    - auth.py:       POST /register, POST /login
    - employees.py:  /employees CRUD (writes require a bearer token)
    - health.py:     GET /health

Routes stay thin: read the request, call a service, shape the success
response. Errors are raised as StaffDirError subclasses and formatted by the
handlers registered in main.py.
"""
