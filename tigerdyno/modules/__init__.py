"""Feature modules. Each subpackage exposes ``create_module(settings)``."""
