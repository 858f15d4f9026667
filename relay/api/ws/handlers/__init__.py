import importlib
import pkgutil


def load_handlers():
    """
    Import every module of the handlers package so their
    ``event_router.register`` decorators run.
    """
    for _, module_name, _ in pkgutil.iter_modules(__path__):
        importlib.import_module(f"{__name__}.{module_name}")


load_handlers()
