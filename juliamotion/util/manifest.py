import importlib.metadata
import json
import os
import platform
import subprocess
import sys
import time
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

_PACKAGES = ["juliamotion", "numpy", "numba", "Pillow", "opencv-python", "natsort", "tqdm"]


@dataclass(frozen=True)
class RunManifest:
    started_utc: str
    config: Dict[str, Any]
    result: Dict[str, Any]
    python: Dict[str, Any]
    packages: Dict[str, str]
    git: Dict[str, Any]
    system: Dict[str, Any]


def utc_iso() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


def _pkg_version(name: str) -> Optional[str]:
    try:
        return importlib.metadata.version(name)
    except importlib.metadata.PackageNotFoundError:
        return None


def git_commit() -> Optional[str]:
    try:
        r = subprocess.run(["git", "rev-parse", "HEAD"], capture_output=True, text=True, check=True)
    except (OSError, subprocess.CalledProcessError):
        return None
    return r.stdout.strip()


def build_manifest(*, started_utc: str, config: Dict[str, Any], result: Dict[str, Any],
                   commit: Optional[str]) -> RunManifest:
    pkgs = {}
    for name in _PACKAGES:
        v = _pkg_version(name)
        if v:
            pkgs[name] = v

    return RunManifest(
        started_utc=started_utc,
        config=config,
        result=result,
        python={"version": sys.version, "executable": sys.executable},
        packages=pkgs,
        git={"commit": commit},
        system={"platform": platform.platform(), "machine": platform.machine(), "cpus": os.cpu_count()},
    )


def write_manifest(path: str, manifest: RunManifest) -> None:
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(asdict(manifest), f, indent=2, sort_keys=True)
