"""
Tourbook: tour browsing, reviews and bookings.

Application package root. A modular monolith using hexagonal
architecture (ports & adapters).

Bounded contexts:
    - tours: Tours, accounts, reviews and bookings.

Layers:
    - domain: Pure business logic, entities, ports (ABCs), errors, query shaping.
    - application: Services orchestrating domain ports.
    - infrastructure: Adapters (SQLAlchemy, bcrypt, JWT, mail) implementing domain ports.
    - interfaces: FastAPI routers, auth dependencies, Pydantic schemas, page views.
    - shared: Cross-cutting concerns (errors, security, logging).
"""
