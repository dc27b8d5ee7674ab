"""Domain-specific errors for shadowgo."""

from __future__ import annotations


class ShadowGoError(Exception):
    """Base error for shadowgo."""


class ResolutionError(ShadowGoError):
    """Raised when an input path, import or package cannot be located."""


class UnsupportedConstructError(ShadowGoError):
    """Raised when an expression or declaration shape cannot be rendered.

    This aborts the current generation pass: a partially generated shadow
    package is worse than none.
    """


class BuildError(ShadowGoError):
    """Raised when an external Go tool (go list, go run, goimports) fails."""


class ContextError(ShadowGoError):
    """Wraps an error with a label describing what was being done.

    Wrapping a ContextError again builds a chain of labels down to the root
    cause, e.g. ``m.file:getPackageName``.
    """

    def __init__(self, ctxt: str, err: BaseException):
        super().__init__(str(err))
        self.ctxt = ctxt
        self.err = err

    def __str__(self) -> str:
        return str(self.err)

    @property
    def contexts(self) -> list[str]:
        out = [self.ctxt]
        inner = self.err
        while isinstance(inner, ContextError):
            out.append(inner.ctxt)
            inner = inner.err
        return out

    def context(self) -> str:
        return ":".join(self.contexts)

    @property
    def root(self) -> BaseException:
        inner = self.err
        while isinstance(inner, ContextError):
            inner = inner.err
        return inner


def is_not_exist(err: BaseException) -> bool:
    if isinstance(err, ContextError):
        return is_not_exist(err.err)
    return isinstance(err, FileNotFoundError)
