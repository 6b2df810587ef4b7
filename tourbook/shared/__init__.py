"""Cross-cutting pieces shared by the API and the pages: the error
responder, HTTP hardening middleware, the rate limiter and log setup."""
