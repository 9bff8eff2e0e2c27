from logmetrics.core.cfn import CfnResource
from logmetrics.core.construct import App
from logmetrics.core.construct import Construct
from logmetrics.core.construct import Resource
from logmetrics.core.construct import Stack

__all__ = ["App", "CfnResource", "Construct", "Resource", "Stack"]
