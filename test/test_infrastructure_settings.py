import ast
import unittest
from pathlib import Path


def _module_level_names(tree: ast.Module) -> list[str]:
    names: list[str] = []
    for node in tree.body:
        if isinstance(node, ast.Assign):
            for target in node.targets:
                if isinstance(target, ast.Name) and target.id.isupper():
                    names.append(target.id)
    return names


def _loaded_names(tree: ast.AST) -> set[str]:
    return {node.id for node in ast.walk(tree) if isinstance(node, ast.Name) and isinstance(node.ctx, ast.Load)}


def _imported_from(tree: ast.AST, module: str) -> set[str]:
    names: set[str] = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.ImportFrom) and node.module == module:
            names.update(alias.name for alias in node.names)
    return names


class TestInfrastructureSettings(unittest.TestCase):
    def test_every_setting_is_consumed(self) -> None:
        """
        Guardrail: each constant in `infrastructure/config/settings.py` is either
        composed into another setting or imported by an infrastructure module.
        """
        repo_root = Path(__file__).resolve().parents[1]
        backend_root = repo_root / "backend"
        settings_file = backend_root / "infrastructure" / "config" / "settings.py"
        settings_tree = ast.parse(settings_file.read_text(encoding="utf-8"), filename=str(settings_file))

        consumed = _loaded_names(settings_tree)
        for py_file in sorted(backend_root.rglob("*.py")):
            if "__pycache__" in py_file.parts or py_file == settings_file:
                continue
            tree = ast.parse(py_file.read_text(encoding="utf-8"), filename=str(py_file))
            consumed |= _imported_from(tree, "infrastructure.config.settings")

        unused = [name for name in _module_level_names(settings_tree) if name not in consumed]
        self.assertFalse(
            unused,
            msg="Unused infrastructure settings (drop them or wire them into a provider):\n" + "\n".join(unused),
        )


if __name__ == "__main__":
    unittest.main()
