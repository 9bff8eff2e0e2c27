import sys
import warnings

_MIN_PYTHON = (3, 11)
_MIN_PYTHON_STR = ".".join(map(str, _MIN_PYTHON))

if sys.version_info < _MIN_PYTHON:
    warnings.warn(
        f"logmetrics is tested on Python {_MIN_PYTHON_STR}+ only. "
        f"Python 3.10 may work but is not guaranteed.",
        FutureWarning,
        stacklevel=2,
    )
