class PersonalizError(Exception):
    """Base class for errors raised by the assistant core."""


class ProviderError(PersonalizError):
    def __init__(self, provider: str, message: str, status_code: int | None = None):
        self.provider = provider
        self.status_code = status_code
        prefix = f"{provider} returned {status_code}" if status_code is not None else f"{provider} request failed"
        super().__init__(f"{prefix}: {message}")


class PlannerError(PersonalizError):
    pass


class PlannerUnavailable(PlannerError):
    """The completion backend could not be reached or answered with an error."""


class PlannerMalformed(PlannerError):
    """The completion came back but held no parsable JSON object."""


class InvalidInput(PersonalizError):
    pass


class DispatchFailure(PersonalizError):
    """A collaborator (script runner, agent store, process control) failed."""
