"""Entry point for running the tool directly.

Usage:
    python -m vdsm_lxc setup
    python -m vdsm_lxc verify 105
"""

from .cli.main import cli

if __name__ == "__main__":
    cli()
