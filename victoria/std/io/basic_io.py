import getpass
import os
import platform
import shutil
import signal
import socket
import subprocess
import sys
import tempfile
from typing import Dict, List, Union


class BasicIO:
    """Host file system and process access behind the ``os`` module.

    Methods take and return plain Python values and let ``OSError``
    propagate; the module layer turns both into Victoria objects.
    """

    def __init__(self, argv: List[str] = None):
        self.argv = list(sys.argv if argv is None else argv)

    def read_file(self, filename: str) -> str:
        with open(filename, 'r', encoding='utf-8') as f:
            return f.read()

    def write_file(self, filename: str, data: str) -> bool:
        with open(filename, 'w', encoding='utf-8') as f:
            f.write(data)
        return True

    def delete_file(self, filename: str) -> bool:
        os.remove(filename)
        return True

    def rename_file(self, old_filename: str, new_filename: str) -> bool:
        os.rename(old_filename, new_filename)
        return True

    def copy_file(self, source_filename: str, dest_filename: str) -> bool:
        shutil.copy(source_filename, dest_filename)
        return True

    def move_file(self, source_filename: str, dest_filename: str) -> bool:
        shutil.move(source_filename, dest_filename)
        return True

    def file_exists(self, filename: str) -> bool:
        return os.path.exists(filename)

    def make_dirs(self, dirname: str) -> bool:
        os.makedirs(dirname, mode=0o755, exist_ok=True)
        return True

    def list_dir(self, dirname: str) -> List[str]:
        return sorted(os.listdir(dirname))

    def stat(self, filename: str) -> Dict[str, Union[str, int, bool]]:
        info = os.stat(filename)
        return {
            "name": os.path.basename(os.path.normpath(filename)),
            "size": info.st_size,
            "isDir": os.path.isdir(filename),
            "modTime": int(info.st_mtime),
        }

    def chmod(self, path: str, mode: int) -> bool:
        os.chmod(path, mode)
        return True

    def getcwd(self) -> str:
        return os.getcwd()

    def chdir(self, dirname: str) -> bool:
        os.chdir(dirname)
        return True

    def environ(self) -> Dict[str, str]:
        return dict(os.environ)

    def getenv(self, name: str) -> str:
        return os.environ.get(name, "")

    def setenv(self, name: str, value: str) -> bool:
        os.environ[name] = value
        return True

    def run_command(self, name: str, args: List[str]) -> subprocess.CompletedProcess:
        return subprocess.run([name] + args, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, text=True)

    def hostname(self) -> str:
        return socket.gethostname()

    def user(self) -> Dict[str, str]:
        if hasattr(os, "getuid"):
            import pwd
            try:
                entry = pwd.getpwuid(os.getuid())
            except KeyError as e:
                raise OSError(f"no user entry for uid {os.getuid()}") from e
            return {
                "username": entry.pw_name,
                "name": entry.pw_gecos.split(",")[0],
                "home": entry.pw_dir,
                "uid": str(entry.pw_uid),
                "gid": str(entry.pw_gid),
            }
        name = getpass.getuser()
        return {"username": name, "name": name, "home": os.path.expanduser("~"), "uid": "", "gid": ""}

    def kill(self, pid: int) -> bool:
        os.kill(pid, getattr(signal, "SIGKILL", signal.SIGTERM))
        return True

    def temp_dir(self) -> str:
        return tempfile.gettempdir()

    @staticmethod
    def platform() -> str:
        return "windows" if sys.platform == "win32" else sys.platform

    @staticmethod
    def arch() -> str:
        return platform.machine()

    @staticmethod
    def pid() -> int:
        return os.getpid()
