"""Allow ``python -m planetgen``."""

from .cli import main

main()
