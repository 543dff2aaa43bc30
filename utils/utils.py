import importlib

from django.core.exceptions import ImproperlyConfigured


def get_class_from_path(path):
    """Load a class from a dotted path given in settings"""
    try:
        module_path, class_name = path.rsplit('.', 1)
        module = importlib.import_module(module_path)
        return getattr(module, class_name)
    except (ValueError, ImportError, AttributeError) as e:
        raise ImproperlyConfigured(f"Cannot load class from `{path}': {e}") from e
