"""
Locate the libpython of the interpreter running this file (stdlib only).

Executed as a script by the target interpreter, one candidate per output line::

    python _find_libpython.py --list-all          # existing candidate paths, most likely first
    python _find_libpython.py --candidate-paths   # every candidate path, existing or not
    python _find_libpython.py --candidate-names   # bare library file names
    python _find_libpython.py                     # first existing candidate, exit code 1 if none

``--verbose`` writes diagnostics to standard error.
"""

import argparse
import ctypes
import os
import sys
import sysconfig
from collections import OrderedDict

_VERBOSE = False
IS_WIN = sys.platform == "win32"
IS_MAC = sys.platform == "darwin"
_CONFIG = sysconfig.get_config_var


def _log(msg, *args):
    if _VERBOSE:
        sys.stderr.write((msg % args if args else msg) + "\n")


def _unique(items):
    return list(OrderedDict.fromkeys(i for i in items if i))


def _shlib_suffix():
    if IS_WIN:
        return ".dll"
    if IS_MAC:
        return ".dylib"
    return _CONFIG("SHLIB_SUFFIX") or ".so"


def library_name(name, suffix=None):
    """``libpython3.12.so`` style file name for the bare library *name* (``python3.12``)."""
    suffix = _shlib_suffix() if suffix is None else suffix
    prefix = "" if IS_WIN else "lib"
    if name.startswith("lib") and not IS_WIN:
        prefix = ""
    return prefix + name + suffix


def linked_libpython():
    """Path of the libpython this process is dynamically linked against, ``None`` for static builds."""
    if IS_WIN:
        return _windows_module_path(sys.dllhandle) if hasattr(sys, "dllhandle") else None
    try:
        info = _DlInfo()
        libdl = ctypes.CDLL(None)
        dladdr = libdl.dladdr
    except (OSError, AttributeError):
        return None
    dladdr.argtypes = [ctypes.c_void_p, ctypes.POINTER(_DlInfo)]
    dladdr.restype = ctypes.c_int
    address = ctypes.cast(ctypes.pythonapi.Py_GetVersion, ctypes.c_void_p).value
    if not dladdr(address, ctypes.byref(info)) or not info.dli_fname:
        return None
    path = os.fsdecode(info.dli_fname)
    if not os.path.isabs(path):
        return None
    path = os.path.realpath(path)
    if path == os.path.realpath(sys.executable):
        _log("%s is statically linked", sys.executable)
        return None
    return path


class _DlInfo(ctypes.Structure):
    _fields_ = [
        ("dli_fname", ctypes.c_char_p),
        ("dli_fbase", ctypes.c_void_p),
        ("dli_sname", ctypes.c_char_p),
        ("dli_saddr", ctypes.c_void_p),
    ]


def _windows_module_path(handle):
    buffer = ctypes.create_unicode_buffer(32768)
    size = ctypes.windll.kernel32.GetModuleFileNameW(ctypes.c_void_p(handle), buffer, len(buffer))
    return buffer.value[:size] if size else None


def candidate_names(suffix=None):
    """Yield library file names, most specific first."""
    suffix = _shlib_suffix() if suffix is None else suffix
    ldlibrary = _CONFIG("LDLIBRARY")
    if ldlibrary and not ldlibrary.endswith(".a"):
        yield ldlibrary
    instsoname = _CONFIG("INSTSONAME")
    if instsoname and not instsoname.endswith(".a"):
        yield instsoname
    if IS_MAC and _CONFIG("PYTHONFRAMEWORK"):
        yield _CONFIG("PYTHONFRAMEWORK")

    version = _CONFIG("VERSION") or "{}.{}".format(*sys.version_info[:2])
    ldversion = _CONFIG("LDVERSION") or version + (getattr(sys, "abiflags", "") or "")
    if IS_WIN:
        yield "python{}{}{}".format(sys.version_info[0], sys.version_info[1], suffix)
        yield "python{}{}".format(sys.version_info[0], suffix)
    else:
        for stem in (ldversion, version):
            yield library_name("python" + stem, suffix)


def candidate_paths(suffix=None):
    """Yield full candidate paths, the library this process links against first."""
    linked = linked_libpython()
    if linked:
        yield linked

    names = _unique(candidate_names(suffix))
    directories = [
        _CONFIG("LIBPL"),
        _CONFIG("srcdir"),
        _CONFIG("LIBDIR"),
    ]
    multiarch = _CONFIG("MULTIARCH")
    if multiarch and _CONFIG("LIBDIR"):
        directories.append(os.path.join(_CONFIG("LIBDIR"), multiarch))
    executable_dir = os.path.dirname(os.path.realpath(sys.executable))
    directories.append(executable_dir)
    for prefix in (sys.prefix, getattr(sys, "base_prefix", None), sys.exec_prefix):
        if prefix:
            directories.append(os.path.join(prefix, "lib"))
            if IS_WIN:
                directories.append(prefix)
    if IS_MAC and _CONFIG("PYTHONFRAMEWORKPREFIX"):
        directories.append(_CONFIG("PYTHONFRAMEWORKPREFIX"))
    # the Windows dll usually sits next to python.exe
    if IS_WIN:
        directories.insert(0, executable_dir)

    for directory in _unique(directories):
        for name in names:
            yield os.path.join(directory, name)

    if IS_MAC and _CONFIG("PYTHONFRAMEWORKINSTALLDIR"):
        yield os.path.join(_CONFIG("PYTHONFRAMEWORKINSTALLDIR"), _CONFIG("PYTHONFRAMEWORK") or "Python")


def finding_libpython():
    """Yield existing candidate paths, realpath-normalized and without duplicates."""
    seen = set()
    for path in candidate_paths():
        _log("candidate %s", path)
        if not os.path.isfile(path):
            continue
        real = os.path.realpath(path)
        if real in seen:
            continue
        seen.add(real)
        _log("found %s", real)
        yield real


def find_libpython():
    for path in finding_libpython():
        return path
    _log("no libpython found for %s", sys.executable)
    return None


def _print_all(items):
    for item in items:
        print(item)


def main(args=None):
    global _VERBOSE  # noqa: PLW0603
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--verbose", "-v", action="store_true", help="print diagnostics to stderr")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--list-all", action="store_true", help="print every existing candidate path")
    group.add_argument("--candidate-paths", action="store_true", help="print every candidate path")
    group.add_argument("--candidate-names", action="store_true", help="print candidate library names")
    ns = parser.parse_args(args)
    _VERBOSE = ns.verbose

    if ns.list_all:
        _print_all(finding_libpython())
    elif ns.candidate_paths:
        _print_all(_unique(candidate_paths()))
    elif ns.candidate_names:
        _print_all(_unique(candidate_names()))
    else:
        path = find_libpython()
        if path is None:
            return 1
        print(path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
