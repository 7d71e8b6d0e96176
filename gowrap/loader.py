"""Fetching of decorator templates from a URL, a local file or the template repository."""

from __future__ import annotations

import json
import os
import subprocess
import urllib.error
import urllib.request
from typing import Any, Callable, Optional

DEFAULT_REPOSITORY = "hexdigest/gowrap"
TEMPLATES_PATH_PREFIX = "templates/"

_URL_FORMAT_COMMITS = "https://api.github.com/repos/{repo}/commits?path=templates/{name}&per_page=1"
_URL_FORMAT_RAW = "https://raw.githubusercontent.com/{repo}/{sha}/templates/{name}"
_URL_TREE = "https://api.github.com/repos/{repo}/git/trees/master?recursive=1"

HttpGet = Callable[[str], "tuple[int, bytes]"]


class UnexpectedStatusError(Exception):
    """Raised when an HTTP request answers with a status other than 200."""

    def __init__(self, status: int):
        super().__init__(f"{status}: unexpected status code")
        self.status = status


class TemplateNotFoundError(LookupError):
    """Raised when the repository holds no template of the requested name."""

    def __init__(self, name: str = ""):
        super().__init__("remote template not found")
        self.name = name


def git_root_path() -> str:
    """The top-level directory of the git work tree containing the current directory."""
    proc = subprocess.run(
        ["git", "rev-parse", "--show-toplevel"],
        capture_output=True,
        text=True,
        check=True,
    )
    return proc.stdout.strip()


def _http_get(url: str) -> tuple[int, bytes]:
    request = urllib.request.Request(url, method="GET")
    try:
        with urllib.request.urlopen(request) as response:
            return response.status, response.read()
    except urllib.error.HTTPError as exc:
        with exc:
            return exc.code, exc.read()


def _lookup(obj: Any, key: str) -> Any:
    if not isinstance(obj, dict):
        raise ValueError(f"expected a JSON object, got {type(obj).__name__}")
    if key in obj:
        return obj[key]
    lowered = key.lower()
    for name, value in obj.items():
        if name.lower() == lowered:
            return value
    return None


class Loader:
    """Loads templates from HTTP(S) URLs, file:// paths or the template repository.

    ``client`` takes a URL and returns the response status and body.
    """

    def __init__(
        self,
        client: Optional[HttpGet] = None,
        git_root: Optional[Callable[[], str]] = None,
        repository: str = DEFAULT_REPOSITORY,
    ):
        self.client = client or _http_get
        self.git_root = git_root or git_root_path
        self.repository = repository

    def load(self, path: str) -> tuple[bytes, str]:
        """Return the template contents and the URL or path it came from."""
        if path.startswith("https://") or path.startswith("http://"):
            return self._get(path), path

        if path.startswith("file://"):
            template_path = path[len("file://"):]
            if not os.path.exists(template_path):
                template_path = os.path.join(self.git_root(), template_path)
            with open(template_path, "rb") as f:
                return f.read(), template_path

        return self._fetch_from_repository(path)

    def list(self) -> list[str]:
        """Names of the templates in the repository."""
        tree = json.loads(self._get(_URL_TREE.format(repo=self.repository)))
        leaves = _lookup(tree, "tree") or []
        result = []
        for leaf in leaves:
            path = _lookup(leaf, "path") or ""
            if path.startswith(TEMPLATES_PATH_PREFIX) and path != TEMPLATES_PATH_PREFIX:
                result.append(path.replace(TEMPLATES_PATH_PREFIX, "", 1))
        return result

    def _get(self, url: str) -> bytes:
        status, body = self.client(url)
        if status != 200:
            raise UnexpectedStatusError(status)
        return body

    def _fetch_from_repository(self, name: str) -> tuple[bytes, str]:
        body = self._get(_URL_FORMAT_COMMITS.format(repo=self.repository, name=name))
        try:
            commits = json.loads(body)
        except json.JSONDecodeError as exc:
            raise ValueError(f"failed to decode commit info: {exc}") from exc
        if not isinstance(commits, list):
            raise ValueError("failed to decode commit info: expected a list")
        if not commits:
            raise TemplateNotFoundError(name)

        sha = _lookup(commits[0], "sha") or ""
        url = _URL_FORMAT_RAW.format(repo=self.repository, sha=sha, name=name)
        return self._get(url), url