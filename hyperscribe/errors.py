""" Exceptions raised by the transcriber.
"""

class ConfigurationError(ValueError):
    """ Raised at setup when the substrate or signal configuration
        cannot be resolved. A transcriber that raised this is unusable.
    """
    pass


class QueryError(Exception):
    """ Raised when a PPN session is used in a way its layout does not
        allow, e.g. reading outputs before the first query.
    """
    pass
