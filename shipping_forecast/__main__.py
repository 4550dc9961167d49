"""Package entry point for ``python -m shipping_forecast``.

WHY: Python's ``-m`` flag looks for ``__main__.py`` inside the package
and executes it.

HOW: Delegates to the CLI's main(); ``--serve`` there starts the HTTP
control API instead of a playback session.
"""

from shipping_forecast.cli import main

if __name__ == "__main__":
    main()
