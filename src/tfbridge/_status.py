"""Status codes and error handling for the TensorFlow C API."""

from enum import IntEnum
from typing import Dict, Optional, Type

from ._lib import get_lib


class Code(IntEnum):
    """Status codes returned by the C API (``TF_Code``)."""

    OK = 0
    CANCELLED = 1
    UNKNOWN = 2
    INVALID_ARGUMENT = 3
    DEADLINE_EXCEEDED = 4
    NOT_FOUND = 5
    ALREADY_EXISTS = 6
    PERMISSION_DENIED = 7
    RESOURCE_EXHAUSTED = 8
    FAILED_PRECONDITION = 9
    ABORTED = 10
    OUT_OF_RANGE = 11
    UNIMPLEMENTED = 12
    INTERNAL = 13
    UNAVAILABLE = 14
    DATA_LOSS = 15
    UNAUTHENTICATED = 16


class TensorFlowError(Exception):
    """Base exception for errors reported by the TensorFlow runtime."""

    code = Code.UNKNOWN

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.message = message
        if cause is not None:
            self.__cause__ = cause

    @property
    def cause(self) -> Optional[BaseException]:
        """The lower-level failure this error was raised from, if any."""
        return self.__cause__


class CancelledError(TensorFlowError):
    code = Code.CANCELLED


class UnknownError(TensorFlowError):
    code = Code.UNKNOWN


class InvalidArgumentError(TensorFlowError):
    code = Code.INVALID_ARGUMENT


class DeadlineExceededError(TensorFlowError):
    code = Code.DEADLINE_EXCEEDED


class NotFoundError(TensorFlowError):
    code = Code.NOT_FOUND


class AlreadyExistsError(TensorFlowError):
    code = Code.ALREADY_EXISTS


class PermissionDeniedError(TensorFlowError):
    code = Code.PERMISSION_DENIED


class ResourceExhaustedError(TensorFlowError):
    code = Code.RESOURCE_EXHAUSTED


class FailedPreconditionError(TensorFlowError):
    """Raised when the runtime is not in a state to run the operation.

    Running ``get_next`` on a graph iterator that was never initialized
    raises this error.
    """

    code = Code.FAILED_PRECONDITION


class AbortedError(TensorFlowError):
    code = Code.ABORTED


class OutOfRangeError(TensorFlowError):
    """Raised when an iteration is requested past the last element.

    This is the normal end-of-sequence signal for dataset iterators, not a
    fatal error. Catch it on its own to terminate a loop.
    """

    code = Code.OUT_OF_RANGE


class UnimplementedError(TensorFlowError):
    code = Code.UNIMPLEMENTED


class InternalError(TensorFlowError):
    code = Code.INTERNAL


class UnavailableError(TensorFlowError):
    code = Code.UNAVAILABLE


class DataLossError(TensorFlowError):
    code = Code.DATA_LOSS


class UnauthenticatedError(TensorFlowError):
    code = Code.UNAUTHENTICATED


_CODE_TO_EXCEPTION: Dict[int, Type[TensorFlowError]] = {
    cls.code: cls
    for cls in (
        CancelledError,
        UnknownError,
        InvalidArgumentError,
        DeadlineExceededError,
        NotFoundError,
        AlreadyExistsError,
        PermissionDeniedError,
        ResourceExhaustedError,
        FailedPreconditionError,
        AbortedError,
        OutOfRangeError,
        UnimplementedError,
        InternalError,
        UnavailableError,
        DataLossError,
        UnauthenticatedError,
    )
}


def exception_for_code(code: int) -> Type[TensorFlowError]:
    """Return the exception class mapped to a status code.

    Codes outside the known range map to :class:`UnknownError`.
    """
    return _CODE_TO_EXCEPTION.get(code, UnknownError)


def raise_for_code(code: int, message: str, context: str = "") -> None:
    """Raise exception if status code indicates error.

    Args:
        code: Status code from C API
        message: Message reported alongside the code
        context: Description of the operation for error message
    """
    if code == Code.OK:
        return
    msg = f"{context}: {message}" if context else message
    raise exception_for_code(code)(msg)


class Status:
    """Owns a native ``TF_Status`` used to collect the outcome of one call.

    Examples:
        >>> status = Status()
        >>> lib.TF_NewSession(graph_ptr, opts_ptr, status.ptr)
        >>> status.check("new_session")
    """

    __slots__ = ("_ptr", "_lib")

    def __init__(self) -> None:
        self._lib = get_lib()
        self._ptr = self._lib.TF_NewStatus()

    def __del__(self) -> None:
        """Release the native status when the Python object is garbage collected."""
        if getattr(self, "_ptr", None):
            self._lib.TF_DeleteStatus(self._ptr)
            self._ptr = None

    @property
    def ptr(self) -> int:
        """Raw ``TF_Status*`` to pass to C API calls."""
        return self._ptr

    @property
    def code(self) -> int:
        return self._lib.TF_GetCode(self._ptr)

    @property
    def message(self) -> str:
        raw = self._lib.TF_Message(self._ptr)
        return raw.decode("utf-8", errors="replace") if raw else ""

    def check(self, context: str = "") -> None:
        """Raise the mapped :class:`TensorFlowError` if the status is not OK."""
        raise_for_code(self.code, self.message, context)
