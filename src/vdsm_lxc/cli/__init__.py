"""vdsm-lxc command line interface."""
