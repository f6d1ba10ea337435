from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

from lyra_sync.domain.entities import HostingTarget, ProjectConfig, ProjectId
from lyra_sync.domain.errors import ConfigurationError


DEFAULT_PROJECT_ID = "default"


@dataclass(slots=True)
class AppConfig:
    projects: dict[ProjectId, ProjectConfig]
    github_token: str | None
    github_api_base_url: str
    github_timeout_seconds: float
    default_hosting: HostingTarget | None
    git_timeout_seconds: float
    branch_prefix: str
    log_file: Path | None


def load_config(args, env: Mapping[str, str], *, require_hosting: bool = False) -> AppConfig:
    """Resolve configuration from CLI arguments, environment and the projects file.

    Raises:
        ConfigurationError: Required settings are missing or malformed.
    """
    projects_file = _normalize_empty(getattr(args, "config", None)) or _normalize_empty(env.get("LYRA_PROJECTS_FILE"))
    if projects_file:
        projects = _load_projects_file(Path(projects_file).expanduser())
    else:
        projects = {DEFAULT_PROJECT_ID: _project_from_env(env)}

    github_token = _normalize_empty(env.get("GITHUB_AUTH")) or _normalize_empty(env.get("GITHUB_TOKEN"))
    github_api_base_url = _normalize_empty(env.get("GITHUB_API_BASE_URL")) or "https://api.github.com"
    github_timeout_seconds = _parse_positive_float(env.get("GITHUB_TIMEOUT_SECONDS"), "GITHUB_TIMEOUT_SECONDS", 30.0)
    git_timeout_seconds = _parse_positive_float(env.get("GIT_TIMEOUT_SECONDS"), "GIT_TIMEOUT_SECONDS", 300.0)

    github_owner = _normalize_empty(env.get("GITHUB_OWNER"))
    github_repo = _normalize_empty(env.get("GITHUB_REPO"))
    if bool(github_owner) != bool(github_repo):
        raise ConfigurationError("GITHUB_OWNER and GITHUB_REPO must be set together")
    default_hosting = HostingTarget(owner=github_owner, repo=github_repo) if github_owner and github_repo else None

    branch_prefix = _normalize_empty(env.get("LYRA_BRANCH_PREFIX")) or "lyra"
    if any(char.isspace() for char in branch_prefix) or "/" in branch_prefix:
        raise ConfigurationError("LYRA_BRANCH_PREFIX must not contain whitespace or '/'")

    raw_log_file = _normalize_empty(env.get("LOG_FILE"))
    log_file = Path(raw_log_file).expanduser() if raw_log_file else None

    if require_hosting:
        if not github_token:
            raise ConfigurationError("Missing GitHub token. Set GITHUB_AUTH or GITHUB_TOKEN")
        unrouted = sorted(pid for pid, project in projects.items() if project.hosting is None)
        if unrouted and default_hosting is None:
            raise ConfigurationError(
                "Missing GITHUB_OWNER/GITHUB_REPO for project(s) without github_owner/github_repo: "
                + ", ".join(unrouted)
            )

    return AppConfig(
        projects=projects,
        github_token=github_token,
        github_api_base_url=github_api_base_url,
        github_timeout_seconds=github_timeout_seconds,
        default_hosting=default_hosting,
        git_timeout_seconds=git_timeout_seconds,
        branch_prefix=branch_prefix,
        log_file=log_file,
    )


def _load_projects_file(path: Path) -> dict[ProjectId, ProjectConfig]:
    if not path.is_file():
        raise ConfigurationError(f"Projects file not found: {path}")

    try:
        with path.open("r", encoding="utf-8") as stream:
            loaded = yaml.safe_load(stream)
    except yaml.YAMLError as error:
        raise ConfigurationError(f"Invalid YAML in projects file '{path}': {error}") from error
    except OSError as error:
        raise ConfigurationError(f"Could not read projects file '{path}': {error}") from error

    if not isinstance(loaded, dict) or not isinstance(loaded.get("projects"), dict) or not loaded["projects"]:
        raise ConfigurationError(f"Projects file '{path}' must contain a non-empty 'projects' mapping")

    projects: dict[ProjectId, ProjectConfig] = {}
    seen_paths: dict[Path, ProjectId] = {}
    for project_id, raw in loaded["projects"].items():
        if not isinstance(raw, dict):
            raise ConfigurationError(f"Project '{project_id}' must be a mapping")
        project = _build_project(str(project_id), raw, base_dir=path.parent)
        if project.repo_path in seen_paths:
            raise ConfigurationError(
                f"Projects '{seen_paths[project.repo_path]}' and '{project_id}' share repo_path {project.repo_path}"
            )
        seen_paths[project.repo_path] = project.project_id
        projects[project.project_id] = project
    return projects


def _project_from_env(env: Mapping[str, str]) -> ProjectConfig:
    raw = {
        "repo_path": env.get("REPO_PATH"),
        "clone_url": env.get("CLONE_URL"),
        "base_branch": env.get("MAIN_BRANCH") or "main",
        "translations_dir": env.get("TRANSLATIONS_DIR") or "src/locale",
        "file_extension": env.get("TRANSLATIONS_FILE_EXTENSION"),
    }
    if not _normalize_empty(raw["repo_path"]):
        raise ConfigurationError("Missing repository path. Use --config/LYRA_PROJECTS_FILE or set REPO_PATH")
    if not _normalize_empty(raw["clone_url"]):
        raise ConfigurationError("Missing clone URL. Set CLONE_URL")
    return _build_project(DEFAULT_PROJECT_ID, raw, base_dir=Path.cwd())


def _build_project(project_id: ProjectId, raw: Mapping[str, Any], *, base_dir: Path) -> ProjectConfig:
    repo_path_raw = _required(raw, "repo_path", project_id)
    clone_url = _required(raw, "clone_url", project_id)
    base_branch = _normalize_empty(_as_str(raw.get("base_branch"))) or "main"
    translations_raw = _normalize_empty(_as_str(raw.get("translations_dir"))) or "src/locale"
    file_extension = _normalize_empty(_as_str(raw.get("file_extension"))) or ".yml"

    if file_extension not in {".yml", ".yaml"}:
        raise ConfigurationError(f"Project '{project_id}': file_extension must be .yml or .yaml")

    repo_path = Path(repo_path_raw).expanduser()
    if not repo_path.is_absolute():
        repo_path = base_dir / repo_path
    repo_path = repo_path.resolve()

    translations_dir = Path(translations_raw).expanduser()
    if not translations_dir.is_absolute():
        translations_dir = repo_path / translations_dir
    translations_dir = translations_dir.resolve()
    if not translations_dir.is_relative_to(repo_path):
        raise ConfigurationError(
            f"Project '{project_id}': translations_dir {translations_dir} must be inside repo_path {repo_path}"
        )

    owner = _normalize_empty(_as_str(raw.get("github_owner")))
    repo = _normalize_empty(_as_str(raw.get("github_repo")))
    if bool(owner) != bool(repo):
        raise ConfigurationError(f"Project '{project_id}': github_owner and github_repo must be set together")

    return ProjectConfig(
        project_id=project_id,
        repo_path=repo_path,
        clone_url=clone_url,
        base_branch=base_branch,
        translations_dir=translations_dir,
        file_extension=file_extension,
        hosting=HostingTarget(owner=owner, repo=repo) if owner and repo else None,
    )


def _required(raw: Mapping[str, Any], key: str, project_id: ProjectId) -> str:
    value = _normalize_empty(_as_str(raw.get(key)))
    if not value:
        raise ConfigurationError(f"Project '{project_id}' is missing required setting '{key}'")
    return value


def _parse_positive_float(value: str | None, name: str, default: float) -> float:
    normalized = _normalize_empty(value)
    if normalized is None:
        return default
    try:
        parsed = float(normalized)
    except ValueError as error:
        raise ConfigurationError(f"{name} must be a number") from error
    if parsed <= 0:
        raise ConfigurationError(f"{name} must be greater than 0")
    return parsed


def _as_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def _normalize_empty(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None
