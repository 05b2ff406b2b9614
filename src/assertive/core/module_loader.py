import ast
import importlib.abc
import importlib.util
import logging
import sys
from pathlib import Path
from types import ModuleType

from assertive.assertions.classifier import DEFAULT_OPERATORS, OperatorResolver
from assertive.core.assert_transformer import AssertRewriteTransformer, build_injected_globals

logger = logging.getLogger(__name__)


class AssertiveModuleLoader(importlib.abc.SourceLoader):
    """Custom loader for test modules with ``assert`` rewriting.

    This loader participates in Python's import protocol and handles
    AST transformation and injection of the assertion runtime during
    module execution.
    """

    def __init__(self, fullname: str, path: Path, resolver: OperatorResolver = DEFAULT_OPERATORS) -> None:
        """Initialize the loader.

        Args:
            fullname: The fully qualified module name.
            path: Path to the module file.
            resolver: Decides which comparison operators keep their default meaning.
        """
        self.fullname = fullname
        self.path = path
        self.resolver = resolver

    def get_filename(self, fullname: str) -> str:
        return str(self.path)

    def get_data(self, path: str) -> bytes:
        return Path(path).read_bytes()

    def exec_module(self, module: ModuleType) -> None:
        filename = self.get_filename(module.__name__)
        source = self.get_source(module.__name__)
        if source is None:
            msg = f"Cannot get source for module {module.__name__}"
            raise ImportError(msg)

        transformer = AssertRewriteTransformer(source, filename=filename)
        tree = ast.parse(source, filename=filename)
        transformed_tree = transformer.visit(tree)
        validated_tree = ast.fix_missing_locations(transformed_tree)
        logger.debug("Rewrote assertions in %s", filename)

        code = compile(validated_tree, filename=filename, mode="exec")
        module.__dict__.update(build_injected_globals(self.resolver))
        exec(code, module.__dict__)


def load_module(path: Path, resolver: OperatorResolver = DEFAULT_OPERATORS) -> ModuleType:
    """Load a Python module from path with its assertions rewritten."""
    loader = AssertiveModuleLoader(path.stem, path, resolver)
    spec = importlib.util.spec_from_file_location(path.stem, path, loader=loader)
    if spec is None:
        msg = f"Cannot load module from {path}"
        raise ImportError(msg)

    module = importlib.util.module_from_spec(spec)
    sys.modules[path.stem] = module
    try:
        loader.exec_module(module)
    except BaseException:
        sys.modules.pop(path.stem, None)
        raise
    return module
