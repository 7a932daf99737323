"""Sphinx configuration for python-preferences documentation."""

from __future__ import annotations

from datetime import datetime, timezone

from python_preferences import __version__

name = "python-preferences"
version = ".".join(__version__.split(".")[:2])
release = __version__
copyright = f"2026-{datetime.now(tz=timezone.utc).year}, {name} contributors"  # noqa: A001

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.autosectionlabel",
    "sphinx.ext.intersphinx",
    "sphinx_autodoc_typehints",
]

intersphinx_mapping = {
    "python": ("https://docs.python.org/3", None),
    "platformdirs": ("https://platformdirs.readthedocs.io/en/latest", None),
    "filelock": ("https://py-filelock.readthedocs.io/en/latest", None),
}
autodoc_member_order = "bysource"
autoclass_content = "both"

templates_path = []
source_suffix = ".rst"
exclude_patterns = ["_build"]

main_doc = "index"
pygments_style = "default"
always_document_param_types = True
project = name

html_theme = "furo"
html_title = project
html_last_updated_fmt = datetime.now(tz=timezone.utc).isoformat()
pygments_dark_style = "monokai"
html_show_sourcelink = False
html_theme_options = {
    "navigation_with_keys": True,
    "sidebar_hide_name": False,
}
