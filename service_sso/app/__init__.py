"""
SSO Service package for the 254Carbon Access Layer.

This package hands an authenticated session from one application to
another without asking the user for credentials again:

- app.registry: Process-wide registry of external login keys.
- app.tokens: Signed cross-server bearer tokens (HS512 JWT).
- app.handoff: Local and cross-server hand-off coordinators.
- app.accounts: Account store implementations (memory, PostgreSQL).
- app.web: Starlette/FastAPI adapters for the hand-off collaborators.
- app.main: Application entrypoint that wires routes and middleware.

Design notes:
- Hand-off entry points are chain steps: they always let the request
  continue and report failures through logging and metrics only.
- Module import must not perform IO; the signing secret is read when the
  service is constructed.
"""
