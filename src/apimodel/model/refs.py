"""References between items.

Three reference shapes exist, distinguished by their ``kind`` tag:

* :class:`Reference` -- an opaque index into a finalized model's
  definitions. The only shape a finalized model contains.
* :class:`BackRef` -- construction-time index of an item that has already
  been added.
* :class:`ForwardRef` -- construction-time pointer to an external path
  (``#/components/schemas/Pet``) whose definition may not exist yet.

Construction code produces :data:`Ref` values (back or forward);
:meth:`~apimodel.model.ApiModel.finalize` rewrites every one of them into a
:class:`Reference`. Because items refer to each other by index rather than
by ownership, self-referential and mutually recursive schemas need no
special handling.
"""

from __future__ import annotations

from typing import Annotated, Callable, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class Reference(BaseModel):
    """Resolved handle to a model definition.

    Only meaningful against the model instance that produced it.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["reference"] = "reference"
    index: int

    def __str__(self) -> str:
        return f"#{self.index}"


class BackRef(BaseModel):
    """Construction-time reference to an already-added item."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["back"] = "back"
    index: int

    def __str__(self) -> str:
        return f"back({self.index})"


class ForwardRef(BaseModel):
    """Construction-time reference to an external path, resolved at finalization."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["forward"] = "forward"
    path: str

    def __str__(self) -> str:
        return f"forward({self.path})"


Ref = Union[BackRef, ForwardRef]
"""A construction-time reference."""

AnyRef = Annotated[
    Union[Reference, BackRef, ForwardRef], Field(discriminator="kind")
]
"""Field type for every reference slot in items and endpoints."""

RefResolver = Callable[[Union[Reference, BackRef, ForwardRef]], Reference]
"""Signature of the function :meth:`ApiModel.finalize` maps over every slot."""
