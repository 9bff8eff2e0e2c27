from importlib.metadata import PackageNotFoundError
from importlib.metadata import version
from typing import Optional

UNKNOWN_VERSION = "unknown"


def distribution_version(name: str) -> Optional[str]:
    try:
        return version(name)
    except PackageNotFoundError:
        return None


def get_version_string() -> str:
    """
    "logmetrics 0.3.0 (botocore 1.34.0)"

    botocore is reported because it supplies the service models `diff` reads
    metric filters through.
    """
    own = distribution_version("logmetrics") or UNKNOWN_VERSION
    botocore = distribution_version("botocore") or UNKNOWN_VERSION
    return f"logmetrics {own} (botocore {botocore})"
