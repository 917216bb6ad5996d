"""sgh: browse hosts from OpenSSH client configs and launch commands against them."""

__version__ = "0.1.0"
