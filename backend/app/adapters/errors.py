class StoreError(Exception):
    """Any failed request against the remote data store."""
    pass


class StoreUnavailable(StoreError):
    """The store could not be reached or the connection dropped mid-request."""
    pass


class StoreConflict(StoreError):
    """A uniqueness or integrity rule rejected the write."""
    pass


class AccessDenied(StoreError, PermissionError):
    """An access policy rejected the request for the calling identity."""
    pass
