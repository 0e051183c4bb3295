"""Allow ``python -m storefront_server``."""

from .cli import main

main()
