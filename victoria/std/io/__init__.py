from typing import List

from ... import catalog
from ...builtin_function import BuiltinFunction
from ...objects import Object, Integer, String, Array, Error, Hash, from_native, native_bool
from .basic_io import BasicIO


def _os_error(what: str, exc: OSError) -> Error:
    detail = exc.strerror or str(exc)
    if exc.filename:
        detail = f"{detail}: {exc.filename}"
    return Error(catalog.module_error("os", f"could not {what}: {detail}"))


def _strings(name: str, args: List[Object], count: int):
    if len(args) != count:
        return Error(catalog.invalid_argument(name, count, len(args)))
    for i, arg in enumerate(args):
        if not isinstance(arg, String):
            return Error(catalog.argument_type(name, str(i + 1), "STRING", arg.type))
    return [a.value for a in args]


def populate_os_module(basic_io: BasicIO = None) -> Hash:
    """Build the ``os`` module hash."""
    if basic_io is None:
        basic_io = BasicIO()

    def os_read_file(args: List[Object]) -> Object:
        values = _strings("readFile", args, 1)
        if isinstance(values, Error):
            return values
        try:
            return String(basic_io.read_file(values[0]))
        except OSError as e:
            return _os_error("read file", e)

    def os_write_file(args: List[Object]) -> Object:
        values = _strings("writeFile", args, 2)
        if isinstance(values, Error):
            return values
        try:
            return native_bool(basic_io.write_file(*values))
        except OSError as e:
            return _os_error("write file", e)

    def os_remove(args: List[Object]) -> Object:
        values = _strings("remove", args, 1)
        if isinstance(values, Error):
            return values
        try:
            return native_bool(basic_io.delete_file(values[0]))
        except OSError as e:
            return _os_error("remove file", e)

    def os_exists(args: List[Object]) -> Object:
        values = _strings("exists", args, 1)
        if isinstance(values, Error):
            return values
        return native_bool(basic_io.file_exists(values[0]))

    def os_rename(args: List[Object]) -> Object:
        values = _strings("rename", args, 2)
        if isinstance(values, Error):
            return values
        try:
            return native_bool(basic_io.rename_file(*values))
        except OSError as e:
            return _os_error("rename file", e)

    def os_copy(args: List[Object]) -> Object:
        values = _strings("copy", args, 2)
        if isinstance(values, Error):
            return values
        try:
            return native_bool(basic_io.copy_file(*values))
        except OSError as e:
            return _os_error("copy file", e)

    def os_move(args: List[Object]) -> Object:
        values = _strings("move", args, 2)
        if isinstance(values, Error):
            return values
        try:
            return native_bool(basic_io.move_file(*values))
        except OSError as e:
            return _os_error("move file", e)

    def os_mkdir(args: List[Object]) -> Object:
        values = _strings("mkdir", args, 1)
        if isinstance(values, Error):
            return values
        try:
            return native_bool(basic_io.make_dirs(values[0]))
        except OSError as e:
            return _os_error("create directory", e)

    def os_read_dir(args: List[Object]) -> Object:
        values = _strings("readDir", args, 1)
        if isinstance(values, Error):
            return values
        try:
            return Array([String(name) for name in basic_io.list_dir(values[0])])
        except OSError as e:
            return _os_error("read directory", e)

    def os_stat(args: List[Object]) -> Object:
        values = _strings("stat", args, 1)
        if isinstance(values, Error):
            return values
        try:
            return from_native(basic_io.stat(values[0]))
        except OSError as e:
            return _os_error("stat file", e)

    def os_chmod(args: List[Object]) -> Object:
        if len(args) != 2:
            return Error(catalog.invalid_argument("chmod", 2, len(args)))
        if not isinstance(args[0], String):
            return Error(catalog.argument_type("chmod", "1", "STRING", args[0].type))
        if not isinstance(args[1], Integer):
            return Error(catalog.argument_type("chmod", "2", "INTEGER", args[1].type))
        try:
            return native_bool(basic_io.chmod(args[0].value, args[1].value))
        except OSError as e:
            return _os_error("chmod", e)

    def os_getwd(args: List[Object]) -> Object:
        return String(basic_io.getcwd())

    def os_chdir(args: List[Object]) -> Object:
        values = _strings("chdir", args, 1)
        if isinstance(values, Error):
            return values
        try:
            return native_bool(basic_io.chdir(values[0]))
        except OSError as e:
            return _os_error("change directory", e)

    def os_env(args: List[Object]) -> Object:
        if not args:
            return from_native(basic_io.environ())
        if len(args) > 2:
            return Error(catalog.invalid_argument("env", 2, len(args)))
        values = _strings("env", args, len(args))
        if isinstance(values, Error):
            return values
        if len(values) == 1:
            return String(basic_io.getenv(values[0]))
        return native_bool(basic_io.setenv(*values))

    def os_args(args: List[Object]) -> Object:
        return Array([String(a) for a in basic_io.argv])

    def os_exec(args: List[Object]) -> Object:
        if not args:
            return Error(catalog.invalid_argument("exec", 1, 0))
        if not isinstance(args[0], String):
            return Error(catalog.argument_type("exec", "1", "STRING", args[0].type))
        try:
            proc = basic_io.run_command(args[0].value, [a.inspect() for a in args[1:]])
        except OSError as e:
            return _os_error("run command", e)
        if proc.returncode != 0:
            return Error(catalog.module_error(
                "os", f"command failed with exit status {proc.returncode}\nOutput: {proc.stdout}"))
        return String(proc.stdout)

    def os_exit(args: List[Object]) -> Object:
        if len(args) > 1:
            return Error(catalog.invalid_argument("exit", 1, len(args)))
        code = 0
        if args:
            if not isinstance(args[0], Integer):
                return Error(catalog.argument_type("exit", "1", "INTEGER", args[0].type))
            code = args[0].value
        raise SystemExit(code)

    def os_hostname(args: List[Object]) -> Object:
        try:
            return String(basic_io.hostname())
        except OSError as e:
            return _os_error("get hostname", e)

    def os_temp_dir(args: List[Object]) -> Object:
        return String(basic_io.temp_dir())

    def os_user(args: List[Object]) -> Object:
        try:
            return from_native(basic_io.user())
        except OSError as e:
            return _os_error("get current user", e)

    def os_kill(args: List[Object]) -> Object:
        if not isinstance(args[0], Integer):
            return Error(catalog.argument_type("kill", "1", "INTEGER", args[0].type))
        try:
            return native_bool(basic_io.kill(args[0].value))
        except OSError as e:
            return _os_error("kill process", e)

    functions = [
        BuiltinFunction("readFile", None, os_read_file),
        BuiltinFunction("writeFile", None, os_write_file),
        BuiltinFunction("remove", None, os_remove),
        BuiltinFunction("exists", None, os_exists),
        BuiltinFunction("rename", None, os_rename),
        BuiltinFunction("copy", None, os_copy),
        BuiltinFunction("move", None, os_move),
        BuiltinFunction("mkdir", None, os_mkdir),
        BuiltinFunction("readDir", None, os_read_dir),
        BuiltinFunction("stat", None, os_stat),
        BuiltinFunction("chmod", None, os_chmod),
        BuiltinFunction("getwd", 0, os_getwd),
        BuiltinFunction("chdir", None, os_chdir),
        BuiltinFunction("env", None, os_env),
        BuiltinFunction("args", 0, os_args),
        BuiltinFunction("exec", None, os_exec),
        BuiltinFunction("exit", None, os_exit),
        BuiltinFunction("hostname", 0, os_hostname),
        BuiltinFunction("tempDir", 0, os_temp_dir),
        BuiltinFunction("user", 0, os_user),
        BuiltinFunction("kill", 1, os_kill),
    ]
    entries = {fn.name: fn for fn in functions}
    entries["platform"] = String(basic_io.platform())
    entries["arch"] = String(basic_io.arch())
    entries["pid"] = Integer(basic_io.pid())
    return Hash.from_dict(entries)


__all__ = ["BasicIO", "populate_os_module"]
