# Routes package init
"""
Deskmate Backend — API Routes Package
=======================================

What:  HTTP route handlers that accept requests and return responses.
How:   Each route module handles one group of endpoints.

Route Inventory:
    - accounts.py:   /create-account, /login, /get-user, /delete-account
    - resources.py:  create / get / edit / list / delete / pin for notes,
                     todos and journal units, plus todo completion
    - health.py:     GET /, GET /health

Routes stay thin: pull data out of the request, call a service, wrap the
result in a response envelope. Failures are raised as DeskmateError
subclasses and formatted by the handlers registered in main.py.
"""
