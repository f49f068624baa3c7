"""credhub: student certificate submission and faculty review service."""

__version__ = "0.1.0"
