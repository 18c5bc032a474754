

class PlannerError(Exception):
    """Base class for errors reported back to the user as-is."""


class NotFoundError(PlannerError):
    pass


class AccessDeniedError(PlannerError):
    pass


class InvalidInputError(PlannerError):
    pass


class EventLockedError(PlannerError):
    pass


class ApartmentFullError(PlannerError):
    pass


class LockUnavailableError(PlannerError):
    pass


class ProvisioningError(PlannerError):
    pass
