"""App import resolution — resolves ``"module:attribute"`` strings to App instances."""

from detour.app import App
from detour.build import resolve_asgi_app


def resolve_app(import_string: str) -> App:
    """Resolve an import string to a detour App instance.

    Accepts ``"module:attribute"`` format; the attribute defaults to
    ``"app"``. Factory functions are called with no arguments.

    Raises:
        ModuleNotFoundError: If the module cannot be imported.
        AttributeError: If the attribute does not exist on the module.
        TypeError: If the resolved object is not a detour ``App``.
    """
    obj = resolve_asgi_app(import_string)

    # Support factory functions - call them if they're not already an App
    if not isinstance(obj, App):
        try:
            obj = obj()
        except Exception as exc:
            msg = f"Factory function {import_string!r} raised an error: {exc}"
            raise TypeError(msg) from exc

    if not isinstance(obj, App):
        msg = f"{import_string!r} resolved to {type(obj).__name__}, not a detour.App instance"
        raise TypeError(msg)

    return obj
