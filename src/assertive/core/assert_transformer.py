"""AST rewriting of ``assert`` statements into classified assertions.

Test modules loaded through :class:`~assertive.core.module_loader.AssertiveModuleLoader`
have every ``assert`` statement replaced by a call into the classifier, so a failure
raises an :class:`~assertive.errors.AssertionFailure` with a full report instead of a
bare ``AssertionError``:

- ``assert a == b`` (and ``!=``, ``<``, ``>``, ``<=``, ``>=``, ``in``) becomes a
  ``Comparison`` with both operands evaluated once.
- ``assert not X`` becomes the ``refute`` of ``X``.
- ``assert binds(PATTERN, value)`` becomes a ``PatternMatch``; the names the pattern
  binds are assigned in the enclosing scope afterwards.
- ``assert matches(PATTERN, value)`` and ``matches(PATTERN, value, when=GUARD)``
  become a ``Predicate``.
- Any other call becomes an opaque call with its arguments captured; anything else
  is judged by truthiness.
- ``assert X, msg`` keeps Python semantics: ``msg`` is only evaluated on failure.

Pattern syntax: a name binds, ``_`` ignores, constants and dotted names are
literals, ``pin(name)`` pins an outer variable, tuples/lists/dicts are structural,
``[head, *tail]`` splits a list and ``Cls(field=pattern)`` matches a record.
"""

from __future__ import annotations

import ast
import types
from collections.abc import Callable
from typing import Any

from assertive.assertions.basic import flunk
from assertive.assertions.classifier import DEFAULT_OPERATORS, OperatorResolver, assert_, refute
from assertive.assertions.expressions import Call, Comparison, Opaque, Operand, PatternMatch, Predicate
from assertive.errors import ConfigurationError
from assertive.patterns.model import Bind, Compound, CompoundKind, Guard, Guarded, Literal, Pin, Var, Wildcard

RUNTIME_NAME = "_assertive_rt"
RESOLVER_NAME = "_assertive_resolver"

_COMPARE_OPS: dict[type[ast.cmpop], str] = {
    ast.Eq: "==",
    ast.NotEq: "!=",
    ast.Lt: "<",
    ast.Gt: ">",
    ast.LtE: "<=",
    ast.GtE: ">=",
    ast.In: "in",
}


def pinned(name: str, read: Callable[[], Any]) -> Pin:
    """Pin the current value of the caller's variable ``name``."""
    try:
        value = read()
    except NameError as error:
        msg = f"pinned variable ^{name} is not bound in the enclosing scope"
        raise ConfigurationError(msg) from error
    return Pin(name, value=value)


def build_injected_globals(resolver: OperatorResolver = DEFAULT_OPERATORS) -> dict[str, Any]:
    """Build the globals mapping injected into rewritten modules.

    Rewritten code reaches every helper through one namespace object. The names
    use a single leading underscore so they are not mangled inside class bodies.
    """
    runtime = types.SimpleNamespace(
        assert_=assert_,
        refute=refute,
        flunk=flunk,
        Comparison=Comparison,
        PatternMatch=PatternMatch,
        Predicate=Predicate,
        Opaque=Opaque,
        Operand=Operand,
        Call=Call,
        Literal=Literal,
        Bind=Bind,
        Wildcard=Wildcard,
        pinned=pinned,
        Compound=Compound,
        CompoundKind=CompoundKind,
        Guard=Guard,
        Guarded=Guarded,
        Var=Var,
    )
    return {RUNTIME_NAME: runtime, RESOLVER_NAME: resolver}


def _rt(attr: str) -> ast.expr:
    return ast.Attribute(value=ast.Name(id=RUNTIME_NAME, ctx=ast.Load()), attr=attr, ctx=ast.Load())


def _call(func: ast.expr, *args: ast.expr, **keywords: ast.expr) -> ast.Call:
    return ast.Call(
        func=func,
        args=list(args),
        keywords=[ast.keyword(arg=name, value=value) for name, value in keywords.items()],
    )


def _tuple(elts: list[ast.expr]) -> ast.Tuple:
    return ast.Tuple(elts=elts, ctx=ast.Load())


class _GuardNameRewriter(ast.NodeTransformer):
    """Redirect reads of pattern-bound names in a guard to the bindings argument."""

    def __init__(self, bound: list[str], bindings_name: str) -> None:
        self._bound = bound
        self._bindings_name = bindings_name
        self.references: list[str] = []

    def visit_Name(self, node: ast.Name) -> ast.expr:  # noqa: N802 - ast API
        if isinstance(node.ctx, ast.Load) and node.id in self._bound:
            if node.id not in self.references:
                self.references.append(node.id)
            subscript = ast.Subscript(
                value=ast.Name(id=self._bindings_name, ctx=ast.Load()),
                slice=ast.Constant(node.id),
                ctx=ast.Load(),
            )
            return ast.copy_location(subscript, node)
        return node


class AssertRewriteTransformer(ast.NodeTransformer):
    """Rewrite ``assert`` statements into classifier calls."""

    OUTCOME_VAR_NAME = "_assertive_outcome"
    NAMES_VAR_NAME = "_assertive_names"
    BINDINGS_ARG_NAME = "_assertive_bindings"

    def __init__(self, source: str | None = None, *, filename: str = "<unknown>") -> None:
        self.source = source
        self.filename = filename

    def _segment(self, node: ast.AST) -> str:
        segment = None
        if self.source is not None:
            segment = ast.get_source_segment(self.source, node)
        return segment if isinstance(segment, str) and segment else ast.unparse(node)

    def visit_Assert(self, node: ast.Assert) -> list[ast.stmt] | ast.stmt:  # noqa: N802 - ast API
        if node.msg is not None:
            return self._rewrite_with_message(node)

        kind, test = "assert", node.test
        if isinstance(test, ast.UnaryOp) and isinstance(test.op, ast.Not):
            kind, test = "refute", test.operand

        bound: list[str] = []
        expression = self._expression(test, bound)
        evaluate = ast.Assign(
            targets=[ast.Name(id=self.OUTCOME_VAR_NAME, ctx=ast.Store())],
            value=_call(
                _rt("assert_" if kind == "assert" else "refute"),
                expression,
                ast.Name(id=RESOLVER_NAME, ctx=ast.Load()),
            ),
        )
        block: list[ast.stmt] = [evaluate]

        if bound and kind == "assert":
            block.append(
                ast.Assign(
                    targets=[ast.Name(id=self.NAMES_VAR_NAME, ctx=ast.Store())],
                    value=_call(
                        ast.Attribute(
                            value=ast.Attribute(
                                value=ast.Name(id=self.OUTCOME_VAR_NAME, ctx=ast.Load()),
                                attr="bindings",
                                ctx=ast.Load(),
                            ),
                            attr="by_name",
                            ctx=ast.Load(),
                        )
                    ),
                )
            )
            for name in bound:
                block.append(
                    ast.Assign(
                        targets=[ast.Name(id=name, ctx=ast.Store())],
                        value=ast.Subscript(
                            value=ast.Name(id=self.NAMES_VAR_NAME, ctx=ast.Load()),
                            slice=ast.Constant(name),
                            ctx=ast.Load(),
                        ),
                    )
                )

        for stmt in block:
            ast.copy_location(stmt, node)
        return block

    def _rewrite_with_message(self, node: ast.Assert) -> ast.stmt:
        # Preserve assert-message laziness: evaluate msg only when failing.
        fail = ast.If(
            test=ast.UnaryOp(op=ast.Not(), operand=node.test),
            body=[
                ast.Expr(
                    value=_call(
                        _rt("flunk"),
                        _call(ast.Name(id="str", ctx=ast.Load()), node.msg),
                        expr=ast.Constant(f"assert {self._segment(node.test)}"),
                    )
                )
            ],
            orelse=[],
        )
        return ast.copy_location(fail, node)

    # Expressions

    def _operand(self, node: ast.expr) -> ast.expr:
        return _call(
            ast.Attribute(value=_rt("Operand"), attr="value", ctx=ast.Load()),
            node,
            ast.Constant(self._segment(node)),
            literal=ast.Constant(isinstance(node, ast.Constant)),
        )

    def _expression(self, node: ast.expr, bound: list[str]) -> ast.expr:
        source = ast.Constant(self._segment(node))
        match node:
            case ast.Compare(left=left, ops=[op], comparators=[right]) if type(op) in _COMPARE_OPS:
                return _call(
                    _rt("Comparison"),
                    ast.Constant(_COMPARE_OPS[type(op)]),
                    self._operand(left),
                    self._operand(right),
                    source=source,
                )
            case ast.Call(func=ast.Name(id="binds"), args=[pattern, value], keywords=keywords):
                return _call(
                    _rt("PatternMatch"),
                    self._guarded(pattern, keywords, bound),
                    self._operand(value),
                    source=source,
                )
            case ast.Call(func=ast.Name(id="matches"), args=[pattern, value], keywords=keywords):
                return _call(
                    _rt("Predicate"),
                    self._guarded(pattern, keywords, []),
                    self._operand(value),
                    source=source,
                )
            case ast.Call(func=func, args=args, keywords=keywords) if self._splittable(node):
                call = _call(
                    _rt("Call"),
                    func,
                    _tuple([self._operand(arg) for arg in args]),
                    _tuple([_tuple([ast.Constant(kw.arg), self._operand(kw.value)]) for kw in keywords]),
                    name=ast.Constant(self._segment(func)),
                )
                return _call(_rt("Opaque"), call, source=source)
            case _:
                return _call(_rt("Opaque"), self._operand(node), source=source)

    @staticmethod
    def _splittable(node: ast.Call) -> bool:
        if any(isinstance(arg, ast.Starred) for arg in node.args):
            return False
        return all(kw.arg is not None for kw in node.keywords)

    # Patterns

    def _unsupported(self, node: ast.AST, reason: str = "unsupported pattern syntax") -> ConfigurationError:
        location = f"{self.filename}:{getattr(node, 'lineno', '?')}"
        return ConfigurationError(f"{reason}: {self._segment(node)} ({location})")

    def _guarded(self, node: ast.expr, keywords: list[ast.keyword], bound: list[str]) -> ast.expr:
        pattern = self._pattern(node, bound)
        guard = next((kw.value for kw in keywords if kw.arg == "when"), None)
        if any(kw.arg != "when" for kw in keywords):
            raise self._unsupported(node, "only the `when` keyword is allowed next to a pattern")
        if guard is None:
            return pattern

        rewriter = _GuardNameRewriter(bound, self.BINDINGS_ARG_NAME)
        guard_source = self._segment(guard)
        body = rewriter.visit(guard)
        test = ast.Lambda(
            args=ast.arguments(
                posonlyargs=[],
                args=[ast.arg(arg=self.BINDINGS_ARG_NAME)],
                kwonlyargs=[],
                kw_defaults=[],
                defaults=[],
            ),
            body=body,
        )
        references = _tuple([_call(_rt("Var"), ast.Constant(name)) for name in rewriter.references])
        return _call(
            _rt("Guarded"),
            pattern,
            _call(_rt("Guard"), test, ast.Constant(guard_source), references),
        )

    def _pattern(self, node: ast.expr, bound: list[str]) -> ast.expr:
        match node:
            case ast.Name(id="_"):
                return _call(_rt("Wildcard"))
            case ast.Name(id=name):
                if name not in bound:
                    bound.append(name)
                return _call(_rt("Bind"), ast.Constant(name))
            case ast.Constant() | ast.Attribute():
                return _call(_rt("Literal"), node)
            case ast.UnaryOp(op=ast.USub() | ast.UAdd(), operand=ast.Constant()):
                return _call(_rt("Literal"), node)
            case ast.Call(func=ast.Name(id="pin"), args=[ast.Name(id=name)], keywords=[]):
                read = ast.Lambda(
                    args=ast.arguments(posonlyargs=[], args=[], kwonlyargs=[], kw_defaults=[], defaults=[]),
                    body=ast.Name(id=name, ctx=ast.Load()),
                )
                return _call(_rt("pinned"), ast.Constant(name), read)
            case ast.Tuple(elts=elts):
                return self._compound("TUPLE", [self._pattern(e, bound) for e in elts])
            case ast.List(elts=[*heads, ast.Starred(value=tail)]):
                children = [self._pattern(e, bound) for e in heads]
                children.append(self._pattern(tail, bound))
                return self._compound("CONS", children)
            case ast.List(elts=elts):
                return self._compound("LIST", [self._pattern(e, bound) for e in elts])
            case ast.Dict(keys=keys, values=values) if all(key is not None for key in keys):
                children = [self._pattern(v, bound) for v in values]
                return self._compound("MAPPING", children, keys=_tuple(list(keys)))
            case ast.Call(func=func, args=[], keywords=keywords) if all(kw.arg for kw in keywords):
                children = [self._pattern(kw.value, bound) for kw in keywords]
                return self._compound(
                    "RECORD",
                    children,
                    keys=_tuple([ast.Constant(kw.arg) for kw in keywords]),
                    record_type=func,
                )
            case _:
                raise self._unsupported(node)

    @staticmethod
    def _compound(kind: str, children: list[ast.expr], **extra: ast.expr) -> ast.expr:
        return _call(
            _rt("Compound"),
            ast.Attribute(value=_rt("CompoundKind"), attr=kind, ctx=ast.Load()),
            _tuple(children),
            **extra,
        )
