from __future__ import annotations

import pytest

from ._gate import require_arch_checks_enabled
from ._utils import compat_root, iter_python_files, matches_prefix, parse_imports

# package -> packages it must never import
_FORBIDDEN = {
    "core": ("compat.platform", "compat.output", "compat.services", "compat.cli"),
    "platform": ("compat.output", "compat.services", "compat.cli"),
    "services": ("compat.cli",),
}


@pytest.mark.parametrize("package", sorted(_FORBIDDEN))
def test_lower_layers_do_not_import_upper_layers(package: str) -> None:
    require_arch_checks_enabled()

    root = compat_root()
    offenders: list[str] = []
    for file_path in iter_python_files(root / package):
        rel = file_path.relative_to(root).as_posix()
        for item in parse_imports(file_path):
            if any(matches_prefix(item.module, prefix) for prefix in _FORBIDDEN[package]):
                offenders.append(f"{rel}:{item.line}: forbidden import '{item.module}'")

    assert not offenders, f"{package} layering violations:\n" + "\n".join(offenders)


def test_direct_rich_imports_are_limited_to_console() -> None:
    require_arch_checks_enabled()

    root = compat_root()
    offenders: list[str] = []
    for file_path in iter_python_files(root):
        rel = file_path.relative_to(root)
        if rel.parts[0] == "test" or rel.as_posix() == "output/console.py":
            continue
        for item in parse_imports(file_path):
            if matches_prefix(item.module, "rich"):
                offenders.append(f"{rel.as_posix()}:{item.line}: direct rich import '{item.module}'")

    assert not offenders, "Direct rich usage policy violations:\n" + "\n".join(offenders)
