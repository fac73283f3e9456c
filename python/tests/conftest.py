"""Fake toolkit trees and loaders for cudisco tests."""

import logging
import os
import stat
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

from cudisco._platform import Platform

LINUX = Platform("Linux", 64, "x86_64")
MACOS = Platform("Darwin", 64, "arm64")
WINDOWS = Platform("Windows", 64, "amd64")

skip_on_windows = pytest.mark.skipif(sys.platform.startswith("win"),
                                     reason="needs POSIX symlinks / executable bits")


def touch(path: Path, executable: bool = False) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"\x7fELF")
    if executable:
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


class FakeLoader:
    """Stands in for cudisco._loader: no real dlopen, scripted default search."""

    def __init__(self, default_search=None, reject=()):
        self.default_search = dict(default_search or {})
        self.reject = set(reject)
        self.opened = []
        self.searched = []

    def find_in_default_search(self, names):
        names = list(names)
        self.searched.append(names)
        for name in names:
            if name in self.default_search:
                return self.default_search[name]
        return None

    def dlopen(self, path):
        if os.path.basename(path) in self.reject:
            raise OSError(f"{path}: invalid ELF header")
        self.opened.append(path)
        return SimpleNamespace(path=path)


@pytest.fixture
def fake_loader():
    return FakeLoader()


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch, tmp_path_factory):
    """No CUDA env vars and an empty PATH, so the host toolkit never leaks in."""
    for var in ("CUDA_PATH", "CUDA_HOME", "CUDA_ROOT", "NVHPC_ROOT",
                "CUDISCO_PREF_CUDA_RUNTIME_VERSION"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("PATH", str(tmp_path_factory.mktemp("empty_path")))

    from cudisco.discovery import get_report
    get_report.cache_clear()
    yield
    get_report.cache_clear()


@pytest.fixture
def toolkit(tmp_path):
    """A Linux-style CUDA 12.4 toolkit with every component discovery needs."""
    root = tmp_path / "cuda-12.4"
    for name in ("cudart", "cufft", "cublas", "cublasLt", "cusparse", "cusolver",
                 "cusolverMg", "curand"):
        touch(root / "lib64" / f"lib{name}.so")
    for name in ("cupti", "nvperf_host", "nvperf_target"):
        touch(root / "extras" / "CUPTI" / "lib64" / f"lib{name}.so")
    touch(root / "bin" / "ptxas", executable=True)
    touch(root / "extras" / "compute-sanitizer" / "compute-sanitizer", executable=True)
    return root


@pytest.fixture
def quiet_logging():
    logging.getLogger("cudisco").setLevel(logging.CRITICAL)
    yield
    logging.getLogger("cudisco").setLevel(logging.WARNING)
