"""Allow ``python -m apibridge``."""

from apibridge.app import main

main()
