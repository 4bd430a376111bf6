"""Service layer: session tokens, password reset and their ports.

Services depend only on the protocols in :mod:`gzclp_api.services._shared.ports`
and raise :class:`~gzclp_api.services._shared.errors.ServiceError` subclasses.
Production adapters are bound in :mod:`gzclp_api.infra.wiring`.
"""
