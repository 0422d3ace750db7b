"""
Environment persistence for Windows.

Variables go to ``HKEY_CURRENT_USER\\Environment`` and the installed manager
is listed under the per-user "Uninstall" key so it shows up in the
installed programs list. Other processes are notified with a
``WM_SETTINGCHANGE`` broadcast.
"""

import ctypes
import logging
import os
import winreg
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Sequence

from toolsetkit.core.directory import APP_NAME
from toolsetkit.core.exceptions import EnvPersistError
from toolsetkit.envsys.base import EnvBinding, EnvPlatform, env_errors

logger = logging.getLogger(__name__)

ENVIRONMENT_KEY = "Environment"
UNINSTALL_KEY = rf"Software\Microsoft\Windows\CurrentVersion\Uninstall\{APP_NAME}"

HWND_BROADCAST = 0xFFFF
WM_SETTINGCHANGE = 0x001A
SMTO_ABORTIFHUNG = 0x0002


def broadcast_environment_change() -> None:
    """Tell running programs that the user environment changed."""
    result = ctypes.c_ulong()
    ctypes.windll.user32.SendMessageTimeoutW(
        HWND_BROADCAST,
        WM_SETTINGCHANGE,
        0,
        "Environment",
        SMTO_ABORTIFHUNG,
        5000,
        ctypes.byref(result),
    )


def _normalize(path: str) -> str:
    return os.path.normcase(os.path.normpath(path))


@contextmanager
def _environment_key(access: int, action: str):
    with env_errors(action):
        with winreg.OpenKey(
            winreg.HKEY_CURRENT_USER, ENVIRONMENT_KEY, 0, access
        ) as key:
            yield key


class WindowsEnvPlatform(EnvPlatform):
    """Persists environment changes into the per-user registry."""

    def persist_env(self, bindings: Sequence[EnvBinding]) -> None:
        with _environment_key(winreg.KEY_WRITE, "persist environment variables") as key:
            for name, value in bindings:
                winreg.SetValueEx(key, name, 0, winreg.REG_SZ, value)
                os.environ[name] = value
        broadcast_environment_change()

    def remove_env(self, names: Iterable[str]) -> None:
        with _environment_key(winreg.KEY_WRITE, "remove environment variables") as key:
            for name in names:
                try:
                    winreg.DeleteValue(key, name)
                except FileNotFoundError:
                    logger.debug(f"{name} was not set")
                os.environ.pop(name, None)
        broadcast_environment_change()

    def _read_path(self):
        with _environment_key(winreg.KEY_READ, "read PATH") as key:
            try:
                value, reg_type = winreg.QueryValueEx(key, "Path")
            except FileNotFoundError:
                value, reg_type = "", winreg.REG_EXPAND_SZ
        return [p for p in value.split(";") if p], reg_type

    def _write_path(self, parts, reg_type) -> None:
        if reg_type not in (winreg.REG_EXPAND_SZ, winreg.REG_SZ):
            reg_type = winreg.REG_EXPAND_SZ
        with _environment_key(winreg.KEY_WRITE, "update PATH") as key:
            winreg.SetValueEx(key, "Path", 0, reg_type, ";".join(parts))
        broadcast_environment_change()

    def add_to_path(self, path: Path) -> None:
        parts, reg_type = self._read_path()
        if _normalize(str(path)) not in {_normalize(p) for p in parts}:
            self._write_path([str(path), *parts], reg_type)

        entries = os.environ.get("PATH", "").split(os.pathsep)
        if str(path) not in entries:
            os.environ["PATH"] = os.pathsep.join([str(path), *filter(None, entries)])

    def remove_from_path(self, path: Path) -> None:
        parts, reg_type = self._read_path()
        kept = [p for p in parts if _normalize(p) != _normalize(str(path))]
        if len(kept) != len(parts):
            self._write_path(kept, reg_type)

        entries = os.environ.get("PATH", "").split(os.pathsep)
        os.environ["PATH"] = os.pathsep.join(e for e in entries if e != str(path))

    def register_installed_program(self, exe_path: Path) -> None:
        with env_errors("register the installed program"), winreg.CreateKey(
            winreg.HKEY_CURRENT_USER, UNINSTALL_KEY
        ) as key:
            winreg.SetValueEx(key, "DisplayName", 0, winreg.REG_SZ, APP_NAME)
            winreg.SetValueEx(
                key, "UninstallString", 0, winreg.REG_SZ, f'"{exe_path}" uninstall'
            )
            winreg.SetValueEx(
                key, "InstallLocation", 0, winreg.REG_SZ, str(exe_path.parent)
            )
            winreg.SetValueEx(key, "NoModify", 0, winreg.REG_DWORD, 1)
            winreg.SetValueEx(key, "NoRepair", 0, winreg.REG_DWORD, 1)
        logger.debug(f"Registered '{exe_path}' as an installed program")

    def unregister_installed_program(self, exe_path: Path) -> None:
        try:
            winreg.DeleteKey(winreg.HKEY_CURRENT_USER, UNINSTALL_KEY)
        except FileNotFoundError:
            logger.debug(f"'{exe_path}' was not registered")
        except OSError as e:
            raise EnvPersistError(f"unable to unregister '{exe_path}': {e}") from e
