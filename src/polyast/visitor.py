"""Pre-order tree walk with per-kind callback dispatch."""

from __future__ import annotations

from collections.abc import Callable
from typing import Generic, TypeVar

from polyast.tree import Native, NativeKind, Tree


class TreeContext:
    """Ancestor stack maintained during a walk, innermost ancestor last."""

    def __init__(self) -> None:
        self._ancestors: list[Tree] = []

    @property
    def ancestors(self) -> list[Tree]:
        return self._ancestors

    def parent(self) -> Tree | None:
        return self._ancestors[-1] if self._ancestors else None

    def before(self, root: Tree) -> None:
        self._ancestors.clear()

    def enter(self, node: Tree) -> None:
        self._ancestors.append(node)

    def leave(self, node: Tree) -> None:
        self._ancestors.pop()


C = TypeVar("C", bound=TreeContext)

Target = type[Tree] | NativeKind


class TreeVisitor(Generic[C]):
    """Dispatch nodes to the callbacks registered for their kind.

    A class target matches nodes of exactly that class; subclasses are not
    matched. A NativeKind target matches Native nodes whose kind is equal.
    Callbacks fire in registration order, in pre-order (parents before
    children), with the node not yet on the ancestor stack.
    """

    def __init__(self) -> None:
        self._by_class: dict[type[Tree], list[Callable[[C, Tree], None]]] = {}
        self._by_native: dict[NativeKind, list[Callable[[C, Tree], None]]] = {}

    def register(self, target: Target, callback: Callable[[C, Tree], None]) -> TreeVisitor[C]:
        if isinstance(target, NativeKind):
            self._by_native.setdefault(target, []).append(callback)
        else:
            self._by_class.setdefault(target, []).append(callback)
        return self

    def scan(self, ctx: C, root: Tree | None) -> None:
        if root is None:
            return
        self.before(ctx, root)
        self._visit(ctx, root)
        self.after(ctx, root)

    def before(self, ctx: C, root: Tree) -> None:
        ctx.before(root)

    def after(self, ctx: C, root: Tree) -> None:
        pass

    def _visit(self, ctx: C, node: Tree) -> None:
        for callback in self._callbacks_for(node):
            callback(ctx, node)
        ctx.enter(node)
        for child in node.children():
            self._visit(ctx, child)
        ctx.leave(node)

    def _callbacks_for(self, node: Tree) -> list[Callable[[C, Tree], None]]:
        callbacks = self._by_class.get(type(node), [])
        if isinstance(node, Native) and self._by_native:
            return [*callbacks, *self._by_native.get(node.native_kind, [])]
        return callbacks
