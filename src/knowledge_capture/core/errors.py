"""Pipeline exception hierarchy."""


class PipelineError(Exception):
    """Base error for the capture pipeline."""


class HardFailure(PipelineError):
    """Step fault that aborts the step and is consumed by the retry bound."""


class ExtractionError(HardFailure):
    """Extraction produced nothing for a source kind that requires content."""


class ItemNotFoundError(HardFailure):
    """The item row for a capture event does not exist."""


class CompletionError(PipelineError):
    """Completion service could not be reached after retries."""


class ResponseError(PipelineError):
    """Model output was rejected."""


class MalformedResponseError(ResponseError):
    """Model output is not parseable JSON."""


class InvalidResponseError(ResponseError):
    """Model output is JSON but does not match the expected schema."""
