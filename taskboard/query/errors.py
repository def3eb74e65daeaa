"""Errors raised while interpreting query parameters."""


class QueryShapeError(ValueError):
    """A parsed JSON value cannot be turned into a typed query."""


class QueryParamError(ValueError):
    """A query-string parameter is malformed.

    ``message`` is the client-facing text returned with the 400 response.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
