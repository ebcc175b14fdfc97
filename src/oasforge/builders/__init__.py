"""Builders: route descriptors to IR nodes.

* :class:`ApiModelBuilder` -- a whole route set to an :class:`~oasforge.models.API`.
* :class:`OperationBuilder` -- one route to one operation.
* :class:`RequestParamsBuilder` -- declared parameters to body schema plus parameters.
* :class:`ParamSchemaBuilder` -- one parameter to its schema.
* :class:`ResponseBuilder` -- response declarations to responses.
"""

from oasforge.builders.api import ApiModelBuilder
from oasforge.builders.operation import OperationBuilder
from oasforge.builders.param_schema import ParamSchemaBuilder
from oasforge.builders.request_params import RequestParamsBuilder
from oasforge.builders.response import ResponseBuilder

__all__ = [
    "ApiModelBuilder",
    "OperationBuilder",
    "ParamSchemaBuilder",
    "RequestParamsBuilder",
    "ResponseBuilder",
]
