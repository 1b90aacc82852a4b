"""Errors raised by the marketplace data layer."""


class MarketplaceError(ValueError):
    """Base class for business conflicts surfaced to the user."""


class DuplicateItemError(MarketplaceError):
    pass


class AlreadyFavoriteError(MarketplaceError):
    pass


class UserExistsError(MarketplaceError):
    pass


class UserNotFoundError(MarketplaceError):
    pass


class NotLoggedInError(MarketplaceError):
    pass


class AccessDeniedError(MarketplaceError):
    pass


class EmptyCartError(MarketplaceError):
    pass


class StorageWriteError(MarketplaceError):
    """The backing store refused a write."""
