"""
Errors raised by :mod:`tokencat`.

+--------------------------+--------------------------------------------------+
| Error                    | Raised when                                      |
+==========================+==================================================+
| :class:`ValidationError` | Token address is malformed (before any I/O)      |
+--------------------------+--------------------------------------------------+
| :class:`ResolutionError` | Price feed or chain metadata could not be        |
|                          | resolved                                         |
+--------------------------+--------------------------------------------------+
| :class:`PersistenceError`| Database is unreachable or a transaction failed  |
+--------------------------+--------------------------------------------------+
"""


class TokencatError(Exception):
    """
    Base class for all :mod:`tokencat` errors
    """


class ValidationError(TokencatError, ValueError):
    """
    Malformed token address. Always a client error.
    """


class ResolutionError(TokencatError):
    """
    Upstream price or metadata resolution failed.

    Known data is never overwritten when this error is raised.
    """


class PersistenceError(TokencatError):
    """
    Reading or writing the database failed. Pending changes are rolled back.
    """
