"""
Interfaces layer package.

Contains FastAPI routers, Pydantic request schemas, auth dependencies
and page views. No business logic belongs here.
Routes call application services and return responses.
"""
