"""Repository and unit-of-work layer.

Services read through :class:`ReadRepository`, stage changes through
:class:`WriteRepository` and persist them with :meth:`UnitOfWork.commit`.
Nothing in this package performs HTTP handling.
"""

from .read import ReadRepository
from .write import WriteRepository
from .unit_of_work import Operation, StagedOperation, UnitOfWork, UnstagedChangeError

__all__ = [
    "ReadRepository",
    "WriteRepository",
    "UnitOfWork",
    "Operation",
    "StagedOperation",
    "UnstagedChangeError",
]
