"""
PetNest Backend — API Routes Package
======================================

Route Inventory:
    - auth.py:       /api/auth      register, login, me
    - pets.py:       /api/pets      browse, admin CRUD, manual status override
    - adoptions.py:  /api/adoptions apply, decide, cancel, list
    - users.py:      /api/users     admin listing, profile read/update
    - health.py:     /health

Routes handle HTTP concerns only (params, status codes, response shape);
business rules live in petnest.services.
"""
