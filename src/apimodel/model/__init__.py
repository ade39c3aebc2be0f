"""The typed model of an OpenAPI document.

Typical usage::

    from apimodel.model import ApiModel

    model = ApiModel.from_document(document)
    for reference in model.iter_items():
        item = model.resolve(reference)
        ...

Sub-modules:

* :mod:`~apimodel.model.api_model` -- the reference graph and the
  top-level conversion.
* :mod:`~apimodel.model.lowering` -- schema to item lowering.
* :mod:`~apimodel.model.endpoint` -- per-operation signatures.
* :mod:`~apimodel.model.values` / :mod:`~apimodel.model.item` /
  :mod:`~apimodel.model.refs` / :mod:`~apimodel.model.scalars` -- the
  type algebra.
* :mod:`~apimodel.model.identifiers` -- naming and deconfliction.
"""

from apimodel.model.api_model import ApiModel
from apimodel.model.endpoint import Endpoint, Parameter, ParameterLocation, Verb
from apimodel.model.item import Item, NewtypeOptions
from apimodel.model.refs import BackRef, ForwardRef, Reference
from apimodel.model.scalars import Scalar, ScalarKind
from apimodel.model.values import (
    ListValue,
    MapValue,
    ObjectMember,
    ObjectValue,
    OneOfEnumValue,
    PropertyOverrideValue,
    RefValue,
    ScalarValue,
    SetValue,
    StringEnumValue,
    Variant,
)

__all__ = [
    "ApiModel",
    "BackRef",
    "Endpoint",
    "ForwardRef",
    "Item",
    "ListValue",
    "MapValue",
    "NewtypeOptions",
    "ObjectMember",
    "ObjectValue",
    "OneOfEnumValue",
    "Parameter",
    "ParameterLocation",
    "PropertyOverrideValue",
    "RefValue",
    "Reference",
    "Scalar",
    "ScalarKind",
    "ScalarValue",
    "SetValue",
    "StringEnumValue",
    "Variant",
    "Verb",
]
