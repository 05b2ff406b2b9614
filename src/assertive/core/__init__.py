from .assert_transformer import AssertRewriteTransformer, build_injected_globals
from .markers import binds, matches, pin
from .module_loader import AssertiveModuleLoader, load_module

__all__ = [
    "build_injected_globals",
    "AssertRewriteTransformer",
    "AssertiveModuleLoader",
    "load_module",
    "binds",
    "matches",
    "pin",
]
