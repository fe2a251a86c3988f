"""Built-in sub-commands of the ``opencivic`` CLI."""
