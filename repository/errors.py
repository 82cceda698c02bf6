class RepositoryError(Exception):
    """Base class for the sentinels a store raises"""


class UserNotFound(RepositoryError):
    pass


class TeamNotFound(RepositoryError):
    pass


class TeamExists(RepositoryError):
    pass


class PRNotFound(RepositoryError):
    pass


class PRExists(RepositoryError):
    pass
