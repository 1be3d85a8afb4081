"""ocentry: multi-call entry point resolver for the oc command line."""

__version__ = '0.0.0.dev0'
