"""Markdown prompt templates for the local model.

``triage.md`` and ``decompose.md`` live beside this module and are
rendered through one shared Jinja2 environment, so each template is
parsed once per process.
"""

from __future__ import annotations

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, TemplateNotFound

_PROMPTS_DIR = Path(__file__).parent
_SUFFIX = ".md"

# Optional variables (e.g. context) left out of render() are falsy and
# render as empty strings, so {% if context %} blocks simply drop out.
_env = Environment(
    loader=FileSystemLoader(str(_PROMPTS_DIR)),
    keep_trailing_newline=True,
    autoescape=False,
)


def available_prompts() -> list[str]:
    """Names of the shipped templates, without the .md suffix."""
    return sorted(p.stem for p in _PROMPTS_DIR.glob(f"*{_SUFFIX}"))


def render_prompt(template_name: str, **variables: object) -> str:
    """Render the named template with ``variables``.

    Raises:
        FileNotFoundError: If no ``<template_name>.md`` ships with the package.
    """
    try:
        template = _env.get_template(template_name + _SUFFIX)
    except TemplateNotFound:
        raise FileNotFoundError(
            f"Prompt template not found: {_PROMPTS_DIR / (template_name + _SUFFIX)}"
        ) from None
    return template.render(**variables)
