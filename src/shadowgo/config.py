from __future__ import annotations

from dataclasses import dataclass

DEFAULT_GOMOCK_IMPORT = "go.uber.org/mock/gomock"


@dataclass(frozen=True)
class MockConfig:
    """Options controlling how a shadow package is generated.

    - mock_prototypes: bodyless functions get a panicking stub instead of a
      forward declaration, and `.../internal` imports are redirected to their
      mocked variant.
    - ignore_inits: do not call the package's renamed `init` functions.
    - match_os_arch: skip files excluded for the current GOOS/GOARCH.
    - mock_name / expect_name / obj_expect_name: names of the generated
      control-plane accessor, package recorder accessor and per-object
      recorder accessor.
    """

    mock_prototypes: bool = False
    ignore_inits: bool = False
    match_os_arch: bool = False
    mock_name: str = "MOCK"
    expect_name: str = "EXPECT"
    obj_expect_name: str = "EXPECT"
    gomock_import: str = DEFAULT_GOMOCK_IMPORT
