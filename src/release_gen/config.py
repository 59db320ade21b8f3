import os
from dataclasses import dataclass

# Marker vocabulary recognized by the Python front-end, matched on the last dotted component.
RELEASE_ALL_MARKER = "release_all"
INCLUDE_MARKER = "include_release"
EXCLUDE_MARKER = "exclude_release"
SYNC_HOOK_MARKER = "release_hook"
FINALIZE_HOOK_MARKER = "finalize_hook"
ASYNC_HOOK_MARKER = "async_release_hook"
SEALED_MARKER = "final"

MIXIN_SUFFIX = "Release"

_DEFAULT_SYNC_INTERFACES = frozenset({"AbstractContextManager", "Releasable", "SupportsClose"})
_DEFAULT_ASYNC_INTERFACES = frozenset({"AbstractAsyncContextManager", "AsyncReleasable", "SupportsAclose"})

_DEFAULT_SYNC_TYPES = frozenset(
    {
        "BinaryIO",
        "IO",
        "TextIO",
        "contextlib.ExitStack",
        "ExitStack",
        "httpx.Client",
        "io.BufferedReader",
        "io.BufferedWriter",
        "io.BytesIO",
        "io.FileIO",
        "io.StringIO",
        "io.TextIOWrapper",
        "requests.Session",
        "socket.socket",
        "sqlite3.Connection",
        "sqlite3.Cursor",
        "subprocess.Popen",
        "tarfile.TarFile",
        "typing.BinaryIO",
        "typing.IO",
        "typing.TextIO",
        "zipfile.ZipFile",
    }
)
_DEFAULT_ASYNC_TYPES = frozenset(
    {
        "AsyncExitStack",
        "contextlib.AsyncExitStack",
        "httpx.AsyncClient",
    }
)


@dataclass(frozen=True)
class GeneratorSettings:
    async_release: bool = True
    sync_interfaces: frozenset[str] = _DEFAULT_SYNC_INTERFACES
    async_interfaces: frozenset[str] = _DEFAULT_ASYNC_INTERFACES
    sync_types: frozenset[str] = _DEFAULT_SYNC_TYPES
    async_types: frozenset[str] = _DEFAULT_ASYNC_TYPES


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() not in {"0", "false", "no", "off", ""}


def _env_names(name: str) -> frozenset[str]:
    value = os.getenv(name, "")
    return frozenset(part.strip() for part in value.split(",") if part.strip())


def get_settings() -> GeneratorSettings:
    return GeneratorSettings(
        async_release=_env_flag("RELEASE_GEN_ASYNC_RELEASE", True),
        sync_interfaces=_DEFAULT_SYNC_INTERFACES | _env_names("RELEASE_GEN_SYNC_INTERFACES"),
        async_interfaces=_DEFAULT_ASYNC_INTERFACES | _env_names("RELEASE_GEN_ASYNC_INTERFACES"),
        sync_types=_DEFAULT_SYNC_TYPES | _env_names("RELEASE_GEN_SYNC_TYPES"),
        async_types=_DEFAULT_ASYNC_TYPES | _env_names("RELEASE_GEN_ASYNC_TYPES"),
    )
