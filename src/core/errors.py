class BadRequestError(ValueError):
    """Request parameters are missing or malformed; answered with HTTP 400."""


class DatasetNotFoundError(FileNotFoundError):
    pass
