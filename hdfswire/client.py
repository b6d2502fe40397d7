"""Filesystem operations on HDFS, expressed as calls to a namenode.

The namenode is any object with an ``execute(method, request)`` method that
sends the named RPC with the given request fields and returns the response
fields as a mapping, raising on failure.
"""

from __future__ import annotations

import dataclasses
import errno
import math
import os
import posixpath
import stat as stat_module
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol

from hdfswire.rpc.errors import NamenodeError

_IS_DIR = 1
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_EXCEPTION_ERRNOS = {
    "java.io.FileNotFoundException": errno.ENOENT,
    "org.apache.hadoop.fs.FileAlreadyExistsException": errno.EEXIST,
    "org.apache.hadoop.security.AccessControlException": errno.EACCES,
    "org.apache.hadoop.fs.PathIsNotEmptyDirectoryException": errno.ENOTEMPTY,
}


class _Namenode(Protocol):
    def execute(self, method: str, request: Mapping[str, Any]) -> Mapping[str, Any]: ...


class PathError(OSError):
    """An operation on a path failed; ``err`` holds the underlying error."""

    def __init__(self, op: str, path: str, err: BaseException) -> None:
        code = err.errno if isinstance(err, OSError) else None
        super().__init__(code, str(err), path)
        self.op = op
        self.path = path
        self.err = err

    def __str__(self) -> str:
        return f"{self.op} {self.path}: {self.err}"


def _os_error(code: int) -> OSError:
    # OSError picks the matching subclass (FileNotFoundError, ...) from the code.
    return OSError(code, os.strerror(code))


def _interpret(err: BaseException) -> BaseException:
    """Translate well-known remote exceptions into local OS errors."""
    if isinstance(err, NamenodeError):
        code = _EXCEPTION_ERRNOS.get(err.exception)
        if code is not None:
            translated = _os_error(code)
            translated.__cause__ = err
            return translated
    return err


def _is_not_exist(err: BaseException) -> bool:
    if isinstance(err, PathError):
        err = err.err
    return isinstance(err, FileNotFoundError)


def _clean(path: str) -> str:
    if not path:
        return "."
    cleaned = posixpath.normpath(path)
    if cleaned.startswith("//"):
        cleaned = "/" + cleaned.lstrip("/")
    return cleaned


def _base(path: str) -> str:
    if not path:
        return "."
    stripped = path.rstrip("/")
    if not stripped:
        return "/"
    return stripped.rsplit("/", 1)[-1]


def _unix_ms(moment: datetime) -> int:
    return math.floor(moment.timestamp()) * 1000


@dataclass(frozen=True)
class FileInfo:
    """Information about a file or directory, built from a namenode file status."""

    name: str
    status: Mapping[str, Any]

    @staticmethod
    def from_status(status: Mapping[str, Any], name: str) -> FileInfo:
        """Build a FileInfo, naming it after the status path or else the given name."""
        raw_path = status.get("path") or b""
        full_name = raw_path.decode() if isinstance(raw_path, bytes) else str(raw_path)
        return FileInfo(name=_base(full_name or name), status=status)

    @property
    def size(self) -> int:
        return int(self.status.get("length", 0))

    @property
    def owner(self) -> str:
        return self.status.get("owner", "")

    @property
    def owner_group(self) -> str:
        return self.status.get("group", "")

    def is_dir(self) -> bool:
        return self.status.get("file_type") == _IS_DIR

    def mode(self) -> int:
        """Permission bits, with S_IFDIR set for directories."""
        permission = self.status.get("permission") or {}
        mode = int(permission.get("perm", 0))
        if self.is_dir():
            mode |= stat_module.S_IFDIR
        return mode

    def mod_time(self) -> datetime:
        """Modification time, to the millisecond, in UTC."""
        millis = int(self.status.get("modification_time", 0))
        return _EPOCH + timedelta(milliseconds=millis)

    def access_time(self) -> datetime:
        """Last access time, to the second, in UTC."""
        millis = int(self.status.get("access_time", 0))
        return _EPOCH + timedelta(seconds=millis // 1000)


@dataclass(frozen=True)
class FsInfo:
    """Capacity and block statistics of the filesystem."""

    capacity: int = 0
    used: int = 0
    remaining: int = 0
    under_replicated: int = 0
    corrupt_blocks: int = 0
    missing_blocks: int = 0
    missing_repl_one_blocks: int = 0
    blocks_in_future: int = 0
    pending_deletion_blocks: int = 0


class Client:
    """Filesystem operations carried out through a namenode connection."""

    def __init__(self, namenode: _Namenode) -> None:
        self.namenode = namenode

    def _call(self, op: str, name: str, method: str, request: Mapping[str, Any]) -> Mapping[str, Any]:
        try:
            return self.namenode.execute(method, request)
        except Exception as exc:
            raise PathError(op, name, _interpret(exc)) from exc

    def _get_file_info(self, name: str) -> FileInfo:
        response = self.namenode.execute("getFileInfo", {"src": name})
        status = response.get("fs")
        if not status:
            raise _os_error(errno.ENOENT)
        return FileInfo.from_status(status, name)

    def mkdir(self, dirname: str, perm: int) -> None:
        """Create a directory with the given permission bits."""
        self._mkdir(dirname, perm, create_parent=False)

    def mkdir_all(self, dirname: str, perm: int) -> None:
        """Create a directory and any missing parents; do nothing if it exists."""
        self._mkdir(dirname, perm, create_parent=True)

    def _mkdir(self, dirname: str, perm: int, create_parent: bool) -> None:
        dirname = _clean(dirname)
        try:
            info = self._get_file_info(dirname)
        except Exception as exc:
            err = _interpret(exc)
            if not _is_not_exist(err):
                raise PathError("mkdir", dirname, err) from exc
        else:
            if create_parent and info.is_dir():
                return
            raise PathError("mkdir", dirname, _os_error(errno.EEXIST))

        request = {
            "src": dirname,
            "masked": {"perm": perm & 0xFFFFFFFF},
            "create_parent": create_parent,
        }
        self._call("mkdir", dirname, "mkdirs", request)

    def chmod(self, name: str, perm: int) -> None:
        """Change the permission bits of the named file."""
        request = {"src": name, "permission": {"perm": perm & 0xFFFFFFFF}}
        self._call("chmod", name, "setPermission", request)

    def chown(self, name: str, user: str, group: str) -> None:
        """Change the owner and group; an empty string leaves that field unchanged."""
        request = {"src": name, "username": user, "groupname": group}
        self._call("chown", name, "setOwner", request)

    def chtimes(self, name: str, atime: datetime, mtime: datetime) -> None:
        """Change the access and modification times, to whole seconds."""
        request = {"src": name, "mtime": _unix_ms(mtime), "atime": _unix_ms(atime)}
        self._call("chtimes", name, "setTimes", request)

    def remove(self, name: str) -> None:
        """Remove the named file or empty directory."""
        self._delete(name, recursive=False)

    def remove_all(self, name: str) -> None:
        """Remove a path and everything under it; a missing path is not an error."""
        try:
            self._delete(name, recursive=True)
        except PathError as exc:
            if not _is_not_exist(exc):
                raise

    def _delete(self, name: str, recursive: bool) -> None:
        try:
            self._get_file_info(name)
        except Exception as exc:
            raise PathError("remove", name, exc) from exc

        response = self._call("remove", name, "delete", {"src": name, "recursive": recursive})
        if response.get("result") is None:
            raise PathError("remove", name, RuntimeError("unexpected empty response"))

    def rename(self, oldpath: str, newpath: str) -> None:
        """Move oldpath to newpath, replacing anything already there."""
        try:
            self._get_file_info(newpath)
        except Exception as exc:
            err = _interpret(exc)
            if not _is_not_exist(err):
                raise PathError("rename", newpath, err) from exc

        request = {"src": oldpath, "dst": newpath, "overwrite_dest": True}
        self._call("rename", oldpath, "rename2", request)

    def stat(self, name: str) -> FileInfo:
        """Describe the named file or directory."""
        try:
            return self._get_file_info(name)
        except Exception as exc:
            raise PathError("stat", name, _interpret(exc)) from exc

    def stat_fs(self) -> FsInfo:
        """Return capacity and block statistics for the whole filesystem."""
        response = self.namenode.execute("getFsStats", {})
        values = {
            f.name: int(response.get(f.name, 0) or 0) for f in dataclasses.fields(FsInfo)
        }
        return FsInfo(**values)