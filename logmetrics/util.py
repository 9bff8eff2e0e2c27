import logging
import time
from functools import wraps
from typing import Any
from typing import Callable
from typing import cast
from typing import List
from typing import TypeVar

import botocore.exceptions

logger = logging.getLogger(__name__)

STATUS_SUCCESS = 0
STATUS_FAILURE = 1
STATUS_KEYBOARD_INTERRUPT = 130

# Error codes that mean "this region is not usable with these credentials".
AWS_REGION_ACCESS_DENIED_ERROR_CODES = [
    "AccessDenied",
    "AccessDeniedException",
    "AuthFailure",
    "AuthorizationError",
    "AuthorizationErrorException",
    "InvalidClientTokenId",
    "UnauthorizedOperation",
    "UnrecognizedClientException",
]

F = TypeVar("F", bound=Callable[..., Any])
AWSGetFunc = TypeVar("AWSGetFunc", bound=Callable[..., List])


def timeit(method: F) -> F:
    """
    Log the wall-clock duration of each call to `method` at DEBUG level.
    """

    @wraps(method)
    def timed(*args, **kwargs):  # type: ignore
        start = time.perf_counter()
        try:
            return method(*args, **kwargs)
        finally:
            logger.debug(
                "%s.%s took %.3fs",
                method.__module__,
                method.__name__,
                time.perf_counter() - start,
            )

    return cast(F, timed)


def aws_handle_regions(func: AWSGetFunc) -> AWSGetFunc:
    """
    Turn region-level access errors into an empty result.

    Wrapped functions must return a list. Access denied style ClientErrors and
    endpoint connection failures are logged and swallowed so that a caller
    iterating over many regions can move on; anything else is re-raised.
    """

    @wraps(func)
    def inner_function(*args, **kwargs):  # type: ignore
        try:
            return func(*args, **kwargs)
        except botocore.exceptions.ClientError as e:
            if e.response["Error"]["Code"] in AWS_REGION_ACCESS_DENIED_ERROR_CODES:
                logger.warning(
                    "%s in this region. Skipping...",
                    e.response["Error"]["Message"],
                )
                return []
            raise
        except botocore.exceptions.EndpointConnectionError as e:
            logger.warning(
                "Could not connect to %s. Region may not be available. Skipping...",
                e.kwargs.get("endpoint_url"),
            )
            return []

    return cast(AWSGetFunc, inner_function)
