"""Allow running as ``python -m shelfwise``."""

from .cli import main

main()
