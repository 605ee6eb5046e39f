# Sphinx configuration for the HITL Orchestrator API reference.

import os
import sys

sys.path.insert(0, os.path.abspath("../src"))

from hitl_orchestrator import __version__  # noqa: E402

project = "HITL Orchestrator"
author = "HITL Orchestrator contributors"
copyright = f"2026, {author}"
version = release = __version__

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.napoleon",
    "sphinx.ext.intersphinx",
    "sphinx_autodoc_typehints",
]

# Provider SDKs are optional extras; autodoc must not need them installed.
autodoc_mock_imports = ["anthropic", "google.genai"]

autodoc_default_options = {
    "members": True,
    "member-order": "bysource",
    "show-inheritance": True,
}
autodoc_class_signature = "separated"
typehints_use_signature_return = True

napoleon_google_docstring = True
napoleon_numpy_docstring = False

intersphinx_mapping = {
    "python": ("https://docs.python.org/3", None),
    "pydantic": ("https://docs.pydantic.dev/latest", None),
}

html_theme = "sphinx_rtd_theme"
html_title = f"HITL Orchestrator {release}"
exclude_patterns = ["_build"]
