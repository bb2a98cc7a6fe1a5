"""
Enterprise Auth Service package.

The service authenticates callers with HMAC-signed bearer tokens and runs
enterprise identity verification against an external gateway over a signed,
partially encrypted form protocol.

Structure:
- app.main: FastAPI app, routes, and startup wiring.
- app.tokens: bearer token codec and developer CLI.
- app.exchange: gateway request/response pipeline and cipher contract.
- app.banks: hot-reloading bank directory.
- app.domain: bearer authentication dependency.
"""
