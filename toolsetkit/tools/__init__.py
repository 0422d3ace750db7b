"""
Unmanaged tools: acquisition, install strategy dispatch and custom recipes.
"""

from .acquirer import AcquiredArtifact, acquire_tool, url_file_name
from .installer import InstalledTool, InstallMethod, ToolInstaller

__all__ = [
    "AcquiredArtifact",
    "acquire_tool",
    "url_file_name",
    "InstalledTool",
    "InstallMethod",
    "ToolInstaller",
]
