# Services package init
"""
Deskmate Backend — Services Layer
===================================

What:  Business logic between the routes (HTTP) and the database.
How:   Services take an AsyncSession and plain values, apply the rules,
       and raise DeskmateError subclasses on failure. They flush but never
       commit; the per-request session dependency owns the transaction.

Service Inventory:
    - TokenService:        issues and verifies signed session tokens
    - CredentialStore:     accounts and password hashing
    - OwnedResourceStore:  owner-scoped CRUD for notes, todos, journal units
"""
