import sys
from pathlib import Path
from typing import List, Optional

import pytest

# Keep the repository free of Python bytecode and __pycache__ artifacts during tests.
sys.dont_write_bytecode = True

TESTS_ROOT = Path(__file__).resolve().parent
REPO_ROOT = TESTS_ROOT.parent
SRC_ROOT = REPO_ROOT / "src"

# Make src/ importable as 'strata'
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))


from strata.core.config.registry import (  # noqa: E402
    ConfigurationNode,
    ConfigurationRegistry,
    ExtensionInfo,
)


EDITOR_NODE = {
    "id": "editor",
    "title": "Editor",
    "properties": {
        "editor.tabSize": {
            "type": "number",
            "default": 4,
            "scope": "language-overridable",
        },
        "editor.fontSize": {"type": "number", "default": 12},
        "editor.insertSpaces": {"type": "boolean", "default": True, "scope": "resource"},
        "editor.rulers": {"type": "array", "default": []},
        "files.exclude": {"type": "object", "default": {"**/.git": True}, "scope": "resource"},
        "window.zoomLevel": {"type": "number", "default": 0, "scope": "window"},
        "update.mode": {
            "type": "string",
            "default": "default",
            "scope": "application",
            "policy": {"name": "UpdateMode"},
        },
        "terminal.shell": {"type": "string", "scope": "machine-overridable", "restricted": True},
    },
}


@pytest.fixture
def extension() -> ExtensionInfo:
    return ExtensionInfo(id="acme.editor", display_name="Acme Editor")


@pytest.fixture
def registry(extension: ExtensionInfo) -> ConfigurationRegistry:
    """Registry with a small, realistic set of editor settings."""
    registry = ConfigurationRegistry()
    node = ConfigurationNode.from_dict(EDITOR_NODE)
    node.extension_info = extension
    registry.register_configuration(node)
    return registry


class FolderResolver:
    """Maps resources to the workspace folder that contains them by path prefix."""

    def __init__(self, folders: Optional[List[str]] = None) -> None:
        self.folders = list(folders or ["/work/a", "/work/b"])

    def __call__(self, resource: str) -> Optional[str]:
        for folder in sorted(self.folders, key=len, reverse=True):
            if resource == folder or resource.startswith(folder + "/"):
                return folder
        return None


@pytest.fixture
def resolve_folder() -> FolderResolver:
    return FolderResolver()
