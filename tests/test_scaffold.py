import io


def _scaffold(receivers, types=None, **kw):
    from shadowgo.builder.scaffold import write_package_scaffold
    from shadowgo.config import MockConfig

    out = io.StringIO()
    write_package_scaffold(
        out,
        name="demo",
        cfg=kw.pop("cfg", MockConfig()),
        mock_by_default=kw.pop("mock_by_default", False),
        receivers=receivers,
        types=types or {},
    )
    return out.getvalue()


def test_receiver_registry_value_form_wins():
    from shadowgo.builder.scaffold import ReceiverRegistry

    reg = ReceiverRegistry()
    assert reg.add("*Stack") == "_Stack_Rec"
    assert reg.add("Stack") == "_Stack_Rec"
    assert reg.add("*Stack") == "_Stack_Rec"
    assert reg.add("*queue") == "_queue_Rec"
    assert reg.items() == [("Stack", False), ("queue", True)]
    assert len(reg) == 2
    assert "Stack" in reg
    assert "*Stack" not in reg


def test_control_plane():
    from shadowgo.builder.scaffold import ReceiverRegistry

    text = _scaffold(ReceiverRegistry(), mock_by_default=True)
    assert "type _meta struct{}\n" in text
    assert "type _package_Rec struct {\n\tmock *_packageMock\n}\n" in text
    assert "_toggles = &_toggleState{all: true, " in text
    assert "func MOCK() *_meta {\n\treturn nil\n}\n" in text
    assert "func (_ *_meta) SetController(controller *gomock.Controller) {\n\t_ctrl = controller\n}\n" in text
    assert "func (_ *_meta) MockAll(enabled bool) {\n\t_toggles.reset(enabled)\n}\n" in text
    assert "func (_ *_meta) EnableMock(names ...string) {\n\t_toggles.enable(names...)\n}\n" in text
    assert "func (_ *_meta) DisableMock(names ...string) {\n\t_toggles.disable(names...)\n}\n" in text
    assert "func EXPECT() *_package_Rec {\n\treturn &_package_Rec{_pkgMock}\n}\n" in text


def test_toggle_precedence_and_init_suspension():
    from shadowgo.builder.scaffold import ReceiverRegistry

    text = _scaffold(ReceiverRegistry())
    assert "\treturn (!t.all && !t.enabled[name]) || t.disabled[name]\n" in text
    assert "func callInits(inits ...func()) {\n\trestore := _toggles.suspend()\n\tdefer restore()\n" in text


def test_custom_accessor_names():
    from shadowgo.builder.scaffold import ReceiverRegistry
    from shadowgo.config import MockConfig

    reg = ReceiverRegistry()
    reg.add("*Stack")
    cfg = MockConfig(
        mock_name="SHADOW",
        expect_name="CALLS",
        obj_expect_name="ON",
        gomock_import="github.com/golang/mock/gomock",
    )
    text = _scaffold(reg, cfg=cfg)
    assert 'import "github.com/golang/mock/gomock"\n' in text
    assert "func SHADOW() *_meta {" in text
    assert "func CALLS() *_package_Rec {" in text
    assert "func (_m *Stack) ON() *_Stack_Rec {" in text


def test_exported_receivers_get_constructors_and_recorders():
    from shadowgo.builder.scaffold import ReceiverRegistry

    reg = ReceiverRegistry()
    reg.add("*Stack")
    reg.add("Celsius")
    text = _scaffold(reg)

    assert "func (_ *_meta) NewStack() *Stack {\n\treturn new(Stack)\n}\n" in text
    assert "type _Stack_Rec struct {\n\tmock *Stack\n}\n" in text
    assert "func (_m *Stack) EXPECT() *_Stack_Rec {\n\treturn &_Stack_Rec{_m}\n}\n" in text

    assert "func (_ *_meta) NewCelsius() Celsius {\n\tvar v Celsius\n\treturn v\n}\n" in text
    assert "func (_m Celsius) EXPECT() *_Celsius_Rec {" in text


def test_unexported_receivers_get_a_wrapper():
    from shadowgo.builder.scaffold import ReceiverRegistry

    reg = ReceiverRegistry()
    reg.add("*stack")
    text = _scaffold(reg)
    assert "type Mock_stack struct {\n\tstack\n}\n" in text
    assert "func (_ *_meta) Newstack() *Mock_stack {\n\treturn &Mock_stack{}\n}\n" in text
    assert "type _stack_Rec struct {\n\tmock *stack\n}\n" in text


def test_interface_receivers_get_no_constructor():
    from shadowgo.builder.scaffold import ReceiverRegistry
    from shadowgo.goast.nodes import InterfaceType

    reg = ReceiverRegistry()
    reg.add("Shape")
    text = _scaffold(reg, {"Shape": InterfaceType(methods=[])})
    assert "NewShape" not in text
    assert "type _Shape_Rec struct {\n\tmock Shape\n}\n" in text
