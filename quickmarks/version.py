"""Extension version (patched into description.xml at build time)."""

EXTENSION_VERSION = "0.3.0"
