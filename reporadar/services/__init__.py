"""Service layer errors.

Services raise these; the CLI turns them into ``Error: ...`` and exit
status 1. Platform failures are not wrapped and propagate as
:class:`reporadar.platforms.errors.PlatformError`.
"""


class ServiceError(Exception):
    """Base for rule violations in the tracked-repository list."""


class NotFoundError(ServiceError):
    """No tracked repository with that id."""


class ConflictError(ServiceError):
    """The repository is already tracked."""


class CapacityError(ServiceError):
    """The free plan's repository limit is reached."""


class ValidationError(ServiceError):
    """An argument is out of range (e.g. ``max_pages < 1``)."""
