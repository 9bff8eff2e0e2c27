from logmetrics.cloudwatch.metric import Metric

__all__ = ["Metric"]
