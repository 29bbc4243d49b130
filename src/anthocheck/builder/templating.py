from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from jinja2 import BaseLoader, DictLoader, Environment, FileSystemLoader, StrictUndefined

SUMMARY_TEMPLATE = """\
{% for row in rows %}
{% if row.section %}
{% if not loop.first %}

{% endif %}
{{ "#" * row.level }} {{ row.title }}

{% else %}
{{ "  " * row.indent }}- [{{ row.title }}]({{ row.target }})
{% endif %}
{% endfor %}
"""


@dataclass(frozen=True)
class Templates:
    env: Environment

    def render_summary(self, context: dict[str, Any]) -> str:
        tpl = self.env.get_template("SUMMARY.md")
        return str(tpl.render(**context))


def create_environment(templates_dir: Path | None = None) -> Templates:
    """Markdown templates; a directory may override the built-in SUMMARY.md."""
    loader: BaseLoader
    if templates_dir is not None and (templates_dir / "SUMMARY.md").is_file():
        loader = FileSystemLoader(str(templates_dir))
    else:
        loader = DictLoader({"SUMMARY.md": SUMMARY_TEMPLATE})
    env = Environment(
        loader=loader,
        undefined=StrictUndefined,
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
    return Templates(env=env)


__all__ = ["SUMMARY_TEMPLATE", "Templates", "create_environment"]
