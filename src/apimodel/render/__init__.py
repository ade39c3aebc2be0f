"""Render a finalized model as Python source.

The generated module contains pydantic models for objects, ``str`` enums
for string enumerations, type aliases for typedefs and unions, and a
:class:`typing.Protocol` named ``Api`` with one method per endpoint.

The rendering pipeline:

1. A Jinja2 environment is configured with templates from
   ``render/templates/``.
2. :class:`~apimodel.render.python.PythonContext` flattens the model graph
   into a template context.
3. ``module.py.j2`` is rendered with that context.

Example::

    from apimodel.model import ApiModel
    from apimodel.render import render_python

    model = ApiModel.from_document(document)
    print(render_python(model))
"""

from __future__ import annotations

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, TemplateError, select_autoescape

from apimodel.exceptions import RenderError
from apimodel.model.api_model import ApiModel
from apimodel.output import debug
from apimodel.render.python import PythonContext

TEMPLATE_DIR = Path(__file__).parent / "templates"
"""Path to the Jinja2 template directory (``render/templates/``)."""

MODULE_TEMPLATE = "module.py.j2"


def render_python(model: ApiModel, emit_docs: bool = True) -> str:
    """Render *model* as the source of a Python module.

    Args:
        model: A finalized model.
        emit_docs: Include docstrings and documentation comments.

    Returns:
        The module source, ending with a newline.

    Raises:
        RenderError: If the model is not finalized or a template fails to
            render.
    """
    context = PythonContext(model, emit_docs=emit_docs).build()
    debug(
        f"Rendering {len(context['definitions'])} definitions and "
        f"{len(context['operations'])} operations"
    )
    env = _create_jinja_env()
    return _render_template(env, MODULE_TEMPLATE, context)


def _create_jinja_env() -> Environment:
    """Create the Jinja2 environment for the source templates.

    Autoescape is disabled for ``.py.j2`` templates, which produce Python
    rather than HTML. Block trimming and lstrip keep the control tags out
    of the generated source.
    """
    return Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=select_autoescape(disabled_extensions=("py.j2",)),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


def _render_template(env: Environment, template_name: str, context: dict) -> str:
    try:
        template = env.get_template(template_name)
        return template.render(**context)
    except TemplateError as exc:
        raise RenderError(f"failed to render {template_name}: {exc}") from exc


__all__ = ["render_python"]
