"""dockstart: scaffold a devcontainer environment from a project feature summary.

Pipeline: FeatureSummary -> composition engine -> Jinja2 renderers ->
``.devcontainer/`` on disk.  See ``dockstart.scaffolder`` for the public
generation API and ``dockstart.cli`` for the command-line entry point.
"""

__version__ = "0.1.0"
