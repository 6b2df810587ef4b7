"""
Application layer package.

Contains services that orchestrate domain logic.
This layer depends on domain ports, never on infrastructure.
"""
