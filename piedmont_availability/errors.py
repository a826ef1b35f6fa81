from typing import Optional


class AvailabilityError(Exception):
    """Base class for everything the availability core raises."""


class TokenAcquisitionError(AvailabilityError):
    """No access token could be obtained from the booking site."""


class AcquisitionUnavailable(TokenAcquisitionError):
    """The browser runtime is missing in this environment.

    Retrying in-process will not help; provide BOOKER_TOKEN or install the browser.
    """


class AcquisitionTimeout(TokenAcquisitionError):
    """The browser ran but no token was observed before the polling budget ran out."""


class UpstreamRejected(AvailabilityError):
    """The Booker API answered with a non-success status, or could not be reached."""

    def __init__(self, status_code: Optional[int], reason: str):
        self.status_code = status_code
        self.reason = reason
        if status_code is None:
            super().__init__(f"API request failed: {reason}")
        else:
            super().__init__(f"API request failed: {status_code} {reason}")

    @property
    def is_auth_failure(self) -> bool:
        return self.status_code in (401, 403)


class MalformedUpstreamShape(AvailabilityError):
    """A Booker response could not be interpreted at all."""
