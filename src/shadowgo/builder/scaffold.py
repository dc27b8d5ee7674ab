"""The package-level scaffold file (`<pkg>_mock.go`).

It holds everything shared by the per-file shadow code: the toggle state
consulted by every dispatcher, the controller binding, the control-plane
handle returned by `MOCK()`, the package recorder returned by `EXPECT()` and
constructors/recorders for every receiver type that had a method mocked.
"""

from __future__ import annotations

from typing import Mapping, TextIO

from ..config import MockConfig
from ..goast import nodes as n
from .funcs import is_exported


def recorder_name(base: str) -> str:
    return f"_{base}_Rec"


class ReceiverRegistry:
    """Receiver base types seen while transforming methods.

    Keyed by the non-pointer type name; when a type has both value and
    pointer receivers the value form wins, so it is emitted only once.
    """

    def __init__(self) -> None:
        self._pointer: dict[str, bool] = {}

    def add(self, recv_expr: str) -> str:
        pointer = recv_expr.startswith("*")
        base = recv_expr[1:] if pointer else recv_expr
        if base in self._pointer:
            self._pointer[base] = self._pointer[base] and pointer
        else:
            self._pointer[base] = pointer
        return recorder_name(base)

    def items(self) -> list[tuple[str, bool]]:
        """(base type, uses pointer form) sorted by type name."""
        return sorted(self._pointer.items())

    def __contains__(self, base: str) -> bool:
        return base in self._pointer

    def __len__(self) -> int:
        return len(self._pointer)


_TOGGLES = """\
type _toggleState struct {
	all      bool
	enabled  map[string]bool
	disabled map[string]bool
}

func (t *_toggleState) useReal(name string) bool {
	return (!t.all && !t.enabled[name]) || t.disabled[name]
}

func (t *_toggleState) reset(all bool) {
	t.all = all
	t.enabled = make(map[string]bool)
	t.disabled = make(map[string]bool)
}

func (t *_toggleState) enable(names ...string) {
	for _, name := range names {
		t.enabled[name] = true
		delete(t.disabled, name)
	}
}

func (t *_toggleState) disable(names ...string) {
	for _, name := range names {
		t.disabled[name] = true
		delete(t.enabled, name)
	}
}

// suspend forces every dispatcher to use the real implementation until the
// returned function is called.
func (t *_toggleState) suspend() func() {
	saved := *t
	t.reset(false)
	return func() {
		*t = saved
	}
}

"""

_CALL_INITS = """\
func callInits(inits ...func()) {
	restore := _toggles.suspend()
	defer restore()
	for _, f := range inits {
		f()
	}
}

"""


def write_package_scaffold(
    out: TextIO,
    *,
    name: str,
    cfg: MockConfig,
    mock_by_default: bool,
    receivers: ReceiverRegistry,
    types: Mapping[str, n.Expr],
) -> None:
    out.write(f"package {name}\n\n")
    out.write(f'import "{cfg.gomock_import}"\n\n')

    out.write("type _meta struct{}\n")
    out.write("type _packageMock struct{ int }\n")
    out.write("type _package_Rec struct {\n")
    out.write("\tmock *_packageMock\n")
    out.write("}\n\n")

    out.write(_TOGGLES)

    out.write("var (\n")
    all_mocked = "true" if mock_by_default else "false"
    out.write(
        f"\t_toggles = &_toggleState{{all: {all_mocked}, "
        "enabled: make(map[string]bool), disabled: make(map[string]bool)}\n"
    )
    out.write("\t_ctrl    *gomock.Controller\n")
    out.write("\t_pkgMock = &_packageMock{}\n")
    out.write(")\n\n")

    out.write(_CALL_INITS)

    out.write(f"func {cfg.mock_name}() *_meta {{\n")
    out.write("\treturn nil\n")
    out.write("}\n\n")

    out.write("func (_ *_meta) SetController(controller *gomock.Controller) {\n")
    out.write("\t_ctrl = controller\n")
    out.write("}\n\n")

    out.write("func (_ *_meta) MockAll(enabled bool) {\n")
    out.write("\t_toggles.reset(enabled)\n")
    out.write("}\n\n")

    out.write("func (_ *_meta) EnableMock(names ...string) {\n")
    out.write("\t_toggles.enable(names...)\n")
    out.write("}\n\n")

    out.write("func (_ *_meta) DisableMock(names ...string) {\n")
    out.write("\t_toggles.disable(names...)\n")
    out.write("}\n\n")

    out.write(f"func {cfg.expect_name}() *_package_Rec {{\n")
    out.write("\treturn &_package_Rec{_pkgMock}\n")
    out.write("}\n\n")

    for base, pointer in receivers.items():
        rec = recorder_name(base)
        recv = f"*{base}" if pointer else base
        mod = "&" if pointer else ""
        ret_type = recv

        if not isinstance(types.get(base), n.InterfaceType):
            if is_exported(base):
                # The type need not be a struct, so no composite literal.
                out.write(f"func (_ *_meta) New{base}() {ret_type} {{\n")
                if pointer:
                    out.write(f"\treturn new({base})\n")
                else:
                    out.write(f"\tvar v {base}\n")
                    out.write("\treturn v\n")
                out.write("}\n\n")
            else:
                # Unexported types are reachable from tests through an exported wrapper.
                mock = f"Mock_{base}"
                ret_type = f"*{mock}" if pointer else mock
                out.write(f"type {mock} struct {{\n")
                out.write(f"\t{base}\n")
                out.write("}\n\n")
                out.write(f"func (_ *_meta) New{base}() {ret_type} {{\n")
                out.write(f"\treturn {mod}{mock}{{}}\n")
                out.write("}\n\n")

        out.write(f"type {rec} struct {{\n")
        out.write(f"\tmock {recv}\n")
        out.write("}\n\n")
        out.write(f"func (_m {recv}) {cfg.obj_expect_name}() *{rec} {{\n")
        out.write(f"\treturn &{rec}{{_m}}\n")
        out.write("}\n\n")
