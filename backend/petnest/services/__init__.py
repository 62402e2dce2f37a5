"""
PetNest Backend — Services Layer
==================================

Service Inventory:
    - StatusCoordinator: derives Pet.status from the pet's adoptions
    - AdoptionService:   apply / decide / cancel / list applications
    - PetService:        pet browse and admin maintenance
    - UserService:       registration, login, profiles

Services take the request's AsyncSession and never commit; get_db_session
commits once per request so an adoption and its pet change land together.
"""
