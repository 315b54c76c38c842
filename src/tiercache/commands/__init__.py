"""Built-in CLI commands registered by :mod:`tiercache.app`."""
