import logging
from typing import Any
from typing import Optional
from typing import Protocol

from logmetrics.core.construct import Construct
from logmetrics.core.construct import Resource
from logmetrics.errors import ValidationError
from logmetrics.logs.generated import CfnLogGroup
from logmetrics.logs.generated import CfnLogGroupProps
from logmetrics.logs.metric_filter import MetricFilter

logger = logging.getLogger(__name__)

# Values accepted by the RetentionInDays property.
RETENTION_DAYS = (
    1, 3, 5, 7, 14, 30, 60, 90, 120, 150, 180, 365, 400, 545, 731, 1096, 1827,
    2192, 2557, 2922, 3288, 3653,
)


class ILogGroup(Protocol):
    @property
    def log_group_name(self) -> str: ...


class _LogGroupBase(Resource):
    log_group_name: str

    def add_metric_filter(self, id: str, **options: Any) -> MetricFilter:
        """Create a MetricFilter on this log group, scoped under it."""
        return MetricFilter(self, id, log_group=self, **options)


class LogGroup(_LogGroupBase):
    """
    Declares a CloudWatch Logs log group.

    The name is required so that filters and other consumers can refer to it directly.
    """

    def __init__(
        self,
        scope: Construct,
        id: str,
        *,
        log_group_name: str,
        retention_in_days: Optional[int] = None,
    ) -> None:
        if retention_in_days is not None and retention_in_days not in RETENTION_DAYS:
            raise ValidationError(
                f"Unsupported log retention of {retention_in_days} days. "
                f"Expected one of: {', '.join(str(d) for d in RETENTION_DAYS)}",
            )
        super().__init__(scope, id)
        self.log_group_name = log_group_name
        self.resource = CfnLogGroup(
            self,
            "Resource",
            properties=CfnLogGroupProps(
                log_group_name=log_group_name,
                retention_in_days=retention_in_days,
            ),
        )

    @staticmethod
    def from_log_group_name(scope: Construct, id: str, log_group_name: str) -> "ImportedLogGroup":
        """Reference an existing log group by name. Nothing is declared for it."""
        return ImportedLogGroup(scope, id, log_group_name=log_group_name)


class ImportedLogGroup(_LogGroupBase):
    def __init__(self, scope: Construct, id: str, *, log_group_name: str) -> None:
        super().__init__(scope, id)
        self.log_group_name = log_group_name
        logger.debug("Imported log group %s as %s", log_group_name, self.path)
