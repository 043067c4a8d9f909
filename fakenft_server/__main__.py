"""Allow running with python -m fakenft_server."""

from .cli import main

main()
