"""Allow `python -m nullscript`."""

from nullscript.cli import app

app()
