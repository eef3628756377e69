"""Allow ``python -m bencodec``."""

from __future__ import annotations

from bencodec.cli.main import main

if __name__ == "__main__":
    main()
