"""
Tours bounded context: domain layer.

- Accounts, roles and the token verification chain
- Query shaping for collection reads
- Rating aggregation, scheduling and geospatial helpers
"""
