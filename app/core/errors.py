from enum import Enum


class AcquisitionsError(Exception):
    """Base class for every error raised by the acquisitions service."""


class ValidationError(AcquisitionsError):
    """Required request input is missing or not acceptable."""


class QueryStage(str, Enum):
    LISTING = "listing"
    STATS = "stats"
    CURRENCY = "currency"
    COMPANY_COUNT = "company_count"
    LOOKUP = "lookup"


class QueryExecutionError(AcquisitionsError):
    """
    A data store statement failed.

    The message is always the same so driver details never reach a caller;
    `stage` tells which statement failed.
    """

    message = "Error when querying DB"

    def __init__(self, stage: QueryStage):
        super().__init__(self.message)
        self.stage = stage


class InvalidModelOutput(AcquisitionsError):
    """The language model produced nothing usable."""


class InvalidLLMOutput(InvalidModelOutput):
    """Model text is not JSON or lacks queryText/variables."""


class EmptyModelResponse(InvalidModelOutput):
    """Model returned no text at all."""


class ModelUnavailable(AcquisitionsError):
    """The language model client is not configured."""


class ConnectionUnavailable(AcquisitionsError):
    """Database could not be reached after the bounded retries."""
