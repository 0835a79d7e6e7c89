"""Allow running as ``python -m nvmdesk``."""

from .main import main

main()
