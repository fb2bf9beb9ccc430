"""
Feature modules for the FamilyHub backend.

Each module keeps to the same layout:
- interfaces.py: Protocols for the module's stores and collaborators
- models.py: Pydantic models for records and request/response bodies
- service.py: Business logic
- repository.py / store.py: Memory and Supabase persistence
- routes.py: FastAPI route handlers, where the module has endpoints
- exceptions.py: Module-specific exceptions

Services receive their collaborators through their constructors; the API's
ServiceContainer does the wiring.
"""
