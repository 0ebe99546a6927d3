"""Digital menu backend: email-verified owner accounts and restaurant menus."""

__version__ = "0.1.0"
