#!/usr/bin/env python
import os
import sys

os.environ.setdefault("SIGNALKIT_SETTINGS_MODULE", "signalkit.settings.base")

from signalkit.core.management import execute_from_command_line  # noqa: E402


def main() -> None:
    if len(sys.argv) < 2:
        command = "demo"
        args = []
    else:
        command = sys.argv[1]
        args = sys.argv[2:]

    execute_from_command_line(command, args)


if __name__ == "__main__":
    main()
