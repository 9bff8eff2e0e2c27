from logmetrics.logs.log_group import ILogGroup
from logmetrics.logs.log_group import ImportedLogGroup
from logmetrics.logs.log_group import LogGroup
from logmetrics.logs.metric_filter import MetricFilter
from logmetrics.logs.pattern import FilterPattern
from logmetrics.logs.pattern import IFilterPattern
from logmetrics.logs.units import MetricFilterUnits

__all__ = [
    "FilterPattern",
    "IFilterPattern",
    "ILogGroup",
    "ImportedLogGroup",
    "LogGroup",
    "MetricFilter",
    "MetricFilterUnits",
]
