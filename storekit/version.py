"""
Version and build information.

Build fields are injected by the release pipeline through environment
variables: STOREKIT_GIT_COMMIT, STOREKIT_GIT_COMMIT_STAMP (unix seconds),
STOREKIT_GIT_BRANCH, STOREKIT_GIT_STATE and STOREKIT_BUILD_DATE.
"""

import json
import os
import platform
import re
import sys
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Optional, Tuple

__version__ = "0.1.0"

_SEMVER = re.compile(
    r"^v?(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    r"(?:-(?P<prerelease>[0-9A-Za-z.-]+))?"
    r"(?:\+(?P<build>[0-9A-Za-z.-]+))?$"
)

# omitted from JSON output when empty
_OPTIONAL_FIELDS = ("git_commit_date", "git_state", "prerelease", "build_metadata")


@dataclass
class VersionInfo:
    version: str
    git_commit: str = ""
    git_commit_date: str = ""
    git_branch: str = ""
    git_state: str = ""
    build_date: str = ""
    python_version: str = ""
    implementation: str = ""
    platform: str = ""
    prerelease: str = ""
    build_metadata: str = ""


def parse_semver(version: str) -> Optional[Tuple[str, str]]:
    """
    Split a semantic version into its prerelease and build metadata.

    Returns:
        (prerelease, build) or None if version is not semver
    """
    match = _SEMVER.match(version or "")
    if match is None:
        return None
    return match.group("prerelease") or "", match.group("build") or ""


def get_info(version: str = __version__) -> VersionInfo:
    """Collect version, build and runtime information."""
    env = os.environ
    info = VersionInfo(
        version=version,
        git_commit=env.get("STOREKIT_GIT_COMMIT", ""),
        git_branch=env.get("STOREKIT_GIT_BRANCH", ""),
        git_state=env.get("STOREKIT_GIT_STATE", ""),
        build_date=env.get("STOREKIT_BUILD_DATE", ""),
        python_version=platform.python_version(),
        implementation=platform.python_implementation(),
        platform=f"{sys.platform}/{platform.machine()}",
    )

    stamp = env.get("STOREKIT_GIT_COMMIT_STAMP", "")
    if stamp:
        try:
            info.git_commit_date = datetime.fromtimestamp(int(stamp)).strftime("%Y-%m-%d %H:%M:%S")
        except (ValueError, OverflowError, OSError):
            pass

    parts = parse_semver(version)
    if parts is not None:
        info.prerelease, info.build_metadata = parts

    return info


def short(info: Optional[VersionInfo] = None) -> str:
    """Version with the abbreviated commit appended, e.g. 0.1.0-1a2b3c4."""
    info = info or get_info()
    if info.git_commit:
        return f"{info.version}-{info.git_commit[:7]}"
    return info.version


def text(info: Optional[VersionInfo] = None) -> str:
    """Human-readable table with right-aligned labels."""
    info = info or get_info()
    rows = [
        ("version", info.version),
        ("git commit", info.git_commit),
        ("git commit date", info.git_commit_date),
        ("git branch", info.git_branch),
        ("git state", info.git_state),
        ("build date", info.build_date),
        ("python version", info.python_version),
        ("implementation", info.implementation),
        ("platform", info.platform),
    ]
    width = max(len(label) for label, _ in rows)
    return "\n".join(f"{label.rjust(width)} {value[:80]}".rstrip() for label, value in rows)


def to_json(info: Optional[VersionInfo] = None) -> str:
    info = info or get_info()
    data = asdict(info)
    for key in _OPTIONAL_FIELDS:
        if not data[key]:
            del data[key]
    return json.dumps(data, indent=1)
