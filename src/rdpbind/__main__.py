"""Allow ``python -m rdpbind``."""

from rdpbind.cli import app

app()
