"""Module entrypoint for ``python -m bigfiles``.

This keeps module-mode execution behavior identical to the console script.
All argument parsing and scanning happen in ``bigfiles.cli``.
"""

from .cli import main


if __name__ == "__main__":
    main()
