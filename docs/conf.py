"""Sphinx configuration for sparsearray documentation."""

from importlib.metadata import version as get_version

# -- Project information -----------------------------------------------------
project = 'sparsearray'
copyright = '2026, Anansi Development'
author = 'Anansi Development'
release = get_version('sparsearray')
version = '.'.join(release.split('.')[:2])

# -- General configuration ---------------------------------------------------
extensions = [
    'sphinx.ext.autodoc',
    'sphinx.ext.napoleon',
    'sphinx.ext.viewcode',
    'sphinx.ext.intersphinx',
]

templates_path = ['_templates']
exclude_patterns = ['_build', 'Thumbs.db', '.DS_Store']

# Google-style Args/Returns/Raises sections only
napoleon_google_docstring = True
napoleon_numpy_docstring = False

# -- Options for HTML output -------------------------------------------------
html_theme = 'sphinx_rtd_theme'

# -- Intersphinx configuration -----------------------------------------------
intersphinx_mapping = {
    'python': ('https://docs.python.org/3', None),
}

# -- Autodoc configuration ---------------------------------------------------
# The trie module is private; only the public class and errors are documented
autodoc_default_options = {
    'members': True,
    'member-order': 'bysource',
    'special-members': '__init__, __eq__, __hash__',
    'exclude-members': '__weakref__, _make',
}
autodoc_typehints = 'description'
