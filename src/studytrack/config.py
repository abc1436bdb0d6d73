"""Where studytrack keeps its settings, and how a run picks its API target.

Three kinds of file, all JSON and all written with :func:`write_json`:

* ``config.json`` in :func:`get_config_dir` -- the
  :class:`~studytrack.models.GlobalConfig`: default profile, output format,
  fetch-cache and refresh settings.
* ``profiles/<name>.json`` -- one :class:`~studytrack.models.Profile` per
  study API deployment the learner talks to.
* ``./studytrack.json`` in the working directory -- a
  :class:`~studytrack.models.ProjectConfig` that may pin the profile.

Bearer tokens live in the data directory instead, see
:mod:`studytrack.auth.credential_store`; :func:`resolve_credential` reads
them (or an env var, a file, a prompt) for the auth plugin.

A run always has a profile. :func:`resolve_config` settles the profile
*name* first and only then looks for a saved profile of that name, falling
back to a transient one aimed at the local API.
"""

from __future__ import annotations

import contextlib
import getpass
import json
import os
import platform
import sys
import tempfile
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from studytrack.exceptions import ConfigError
from studytrack.models import AuthConfig, GlobalConfig, Profile, ProjectConfig

_APP_NAME = "studytrack"
DEFAULT_PROFILE_NAME = "default"
PROJECT_CONFIG_FILENAME = "studytrack.json"

M = TypeVar("M", bound=BaseModel)


# --- Directories ---


def _is_xdg_platform() -> bool:
    """Return True on Linux and the BSDs, where XDG base directories apply."""
    system = platform.system()
    return system == "Linux" or system.endswith("BSD")


def _app_dir(xdg_var: str, xdg_default: str, fallback: str) -> Path:
    """Resolve and create one studytrack directory.

    ``$<xdg_var>/studytrack`` (``~/<xdg_default>/studytrack`` when the
    variable is unset) on XDG platforms, ``~/.studytrack/<fallback>``
    everywhere else.
    """
    if _is_xdg_platform():
        base = os.environ.get(xdg_var) or str(Path.home() / xdg_default)
        path = Path(base) / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}" / fallback
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_dir() -> Path:
    """Return the directory holding ``config.json`` and ``profiles/``.

    Returns:
        ``$XDG_CONFIG_HOME/studytrack`` on Linux/BSD, ``~/.studytrack``
        elsewhere. The directory exists when this returns.
    """
    return _app_dir("XDG_CONFIG_HOME", ".config", "")


def get_data_dir() -> Path:
    """Return the directory holding stored credentials and crash logs.

    Returns:
        ``$XDG_DATA_HOME/studytrack`` on Linux/BSD, ``~/.studytrack/data``
        elsewhere. The directory exists when this returns.
    """
    return _app_dir("XDG_DATA_HOME", ".local/share", "data")


def get_profiles_dir() -> Path:
    path = get_config_dir() / "profiles"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- JSON files ---


def _atomic_write(path: Path, text: str, mode: Optional[int] = None) -> None:
    """Replace *path* with *text* via a temp file in the same directory.

    The temp file is fsynced and then renamed over *path* with
    ``os.replace``, so readers see either the old content or the new one.
    *mode* is applied to the temp file before anything is written to it.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        if mode is not None:
            os.chmod(tmp_name, mode)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_name)
        raise


def write_json(path: Path, data: Any, mode: Optional[int] = None) -> None:
    """Atomically write *data* to *path* as indented JSON.

    Args:
        path: Destination file; missing parent directories are created.
        data: A JSON-serialisable value, typically ``model.model_dump(mode="json")``.
        mode: Permission bits for the new file, e.g. ``0o600`` for secrets.
    """
    _atomic_write(path, json.dumps(data, indent=2) + "\n", mode)


def read_model(path: Path, model: type[M], what: str) -> M:
    """Load *path* and validate its JSON as *model*.

    Args:
        path: File to read.
        model: The pydantic model the content must satisfy.
        what: Human-readable name used in the error message.

    Raises:
        ConfigError: If the file is not JSON or does not validate.
    """
    try:
        return model.model_validate(json.loads(path.read_text(encoding="utf-8")))
    except (json.JSONDecodeError, ValidationError) as exc:
        raise ConfigError(f"Invalid {what} at {path}: {exc}") from exc


# --- Global and project config ---


def _global_config_path() -> Path:
    return get_config_dir() / "config.json"


def load_global_config() -> GlobalConfig:
    """Load ``config.json``.

    Returns:
        The stored :class:`~studytrack.models.GlobalConfig`, or the defaults
        when nothing has been saved yet.

    Raises:
        ConfigError: If the file exists but is invalid.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    return read_model(path, GlobalConfig, "global config")


def save_global_config(config: GlobalConfig) -> None:
    """Write *config* to ``config.json``, defaults included.

    Args:
        config: The settings to persist.
    """
    write_json(_global_config_path(), config.model_dump(mode="json"))


def load_project_config() -> Optional[ProjectConfig]:
    """Load ``./studytrack.json`` from the working directory.

    Returns:
        The :class:`~studytrack.models.ProjectConfig`, or ``None`` when the
        directory has no project file.

    Raises:
        ConfigError: If the file exists but is invalid.
    """
    path = Path.cwd() / PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    return read_model(path, ProjectConfig, "project config")


# --- Profiles ---


def _profile_path(name: str) -> Path:
    return get_profiles_dir() / f"{name}.json"


def list_profiles() -> list[str]:
    """Return the names of all saved profiles.

    Returns:
        Profile names (the file stems under :func:`get_profiles_dir`), sorted.
    """
    return sorted(p.stem for p in get_profiles_dir().glob("*.json") if p.is_file())


def profile_exists(name: str) -> bool:
    """Check whether a profile called *name* has been saved.

    Args:
        name: Profile name.

    Returns:
        ``True`` if ``profiles/<name>.json`` exists.
    """
    return _profile_path(name).is_file()


def load_profile(name: str) -> Profile:
    """Load the saved profile called *name*.

    Args:
        name: Profile name, the stem of its file under ``profiles/``.

    Returns:
        The validated :class:`~studytrack.models.Profile`.

    Raises:
        ConfigError: If no such profile was saved, or its file is invalid.
    """
    path = _profile_path(name)
    if not path.is_file():
        raise ConfigError(f"Profile '{name}' not found at {path}")
    return read_model(path, Profile, f"profile '{name}'")


def save_profile(profile: Profile) -> None:
    """Save *profile*, replacing any saved profile of the same name.

    Args:
        profile: The profile to write; its ``name`` selects the file.
    """
    write_json(_profile_path(profile.name), profile.model_dump(mode="json"))


def default_profile(name: str = DEFAULT_PROFILE_NAME) -> Profile:
    """Build the transient profile used when *name* was never saved.

    It targets the local API address and reads its token from the
    credential store entry of the same name, which is where
    ``studytrack auth login`` puts it.
    """
    return Profile(name=name, auth=AuthConfig(source=f"store:{name}"))


def resolve_config(
    cli_profile: Optional[str] = None,
    cli_base_url: Optional[str] = None,
) -> tuple[GlobalConfig, Profile]:
    """Resolve the global settings and the profile this run talks to.

    The profile name is the first one set among ``cli_profile``,
    ``STUDYTRACK_PROFILE``, the project file's ``default_profile``, the global
    ``default_profile``, and finally ``"default"``. The saved profile of that
    name is used; a name that was never saved gets :func:`default_profile`,
    unless it came from ``--profile``, which must name a saved profile.

    The API address is then overridden by ``cli_base_url`` or, failing that,
    ``STUDYTRACK_BASE_URL``.

    Args:
        cli_profile: Value of the ``--profile`` flag.
        cli_base_url: Value of the ``--base-url`` flag.

    Returns:
        A tuple of ``(global_config, active_profile)``.

    Raises:
        ConfigError: If a config file is invalid, or ``cli_profile`` names a
            profile that does not exist.
    """
    global_cfg = load_global_config()
    project = load_project_config()

    candidates = (
        cli_profile,
        os.environ.get("STUDYTRACK_PROFILE"),
        project.default_profile if project is not None else None,
        global_cfg.default_profile,
    )
    name = next((c for c in candidates if c), DEFAULT_PROFILE_NAME)

    if cli_profile or profile_exists(name):
        profile = load_profile(name)
    else:
        profile = default_profile(name)

    base_url = cli_base_url or os.environ.get("STUDYTRACK_BASE_URL")
    if base_url:
        profile.base_url = base_url
    return global_cfg, profile


# --- Credential sources ---


def _from_env(var_name: str) -> str:
    value = os.environ.get(var_name)
    if value is None:
        raise ConfigError(f"Environment variable '{var_name}' is not set (source: env:{var_name})")
    return value


def _from_file(location: str) -> str:
    path = Path(location).expanduser()
    if not path.is_file():
        raise ConfigError(f"Credential file not found: {path} (source: file:{location})")
    try:
        return path.read_text(encoding="utf-8").strip()
    except OSError as exc:
        raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc


def _from_prompt(_: str) -> str:
    if not sys.stdin.isatty():
        raise ConfigError("Cannot prompt for a token: stdin is not a TTY (source: prompt)")
    return getpass.getpass("Study API token: ")


def _from_store(profile_name: str) -> str:
    from studytrack.auth.credential_store import CredentialStore

    entry = CredentialStore(profile_name).load_valid()
    if entry is None:
        raise ConfigError(
            f"No valid credential in store for profile '{profile_name}' "
            f"(run 'studytrack auth login')"
        )
    return entry.credential


_CREDENTIAL_SOURCES: dict[str, Callable[[str], str]] = {
    "env": _from_env,
    "file": _from_file,
    "prompt": _from_prompt,
    "store": _from_store,
}


def resolve_credential(source: str) -> str:
    """Read the bearer token described by *source*.

    Supported forms are ``env:VAR``, ``file:/path`` (content stripped of
    surrounding whitespace), ``prompt`` (asks on the terminal) and
    ``store:PROFILE`` (the token saved by ``studytrack auth login``).

    Args:
        source: The ``source`` field of an :class:`~studytrack.models.AuthConfig`.

    Returns:
        The token.

    Raises:
        ConfigError: If the form is unknown or the token is unavailable.
    """
    kind, _, argument = source.partition(":")
    reader = _CREDENTIAL_SOURCES.get(kind)
    if reader is None:
        raise ConfigError(f"Unknown credential source format: {source}")
    return reader(argument)
