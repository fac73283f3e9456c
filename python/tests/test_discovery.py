"""Tests for cudisco.discovery, the one-shot initialization pass."""

import logging
from unittest import mock

import pytest

from cudisco import discovery
from cudisco.discovery import (
    COMPONENTS,
    Component,
    DiscoveryReport,
    compute_sanitizer,
    discover,
    get_binary,
    get_library,
    get_report,
    is_available,
    with_compute_sanitizer,
)
from cudisco.errors import ComponentNotFoundError, DiscoveryError, LibraryLoadError

from conftest import LINUX, FakeLoader, skip_on_windows, touch


class TestGetLibrary:
    def test_unversioned_first(self, tmp_path, fake_loader):
        touch(tmp_path / "lib64" / "libcublas.so")
        touch(tmp_path / "lib64" / "libcublas.so.12")
        with mock.patch.object(discovery, "cuda_library_versions") as versions:
            path, handle = get_library([str(tmp_path)], "cublas", platform=LINUX, loader=fake_loader)
        versions.assert_not_called()
        assert path.path == str(tmp_path / "lib64" / "libcublas.so")
        assert handle.path == path.path
        assert fake_loader.opened == [path.path]

    def test_versioned_fallback(self, tmp_path, fake_loader):
        lib = touch(tmp_path / "lib64" / "libcublas.so.12")
        path, _ = get_library([str(tmp_path)], "cublas", platform=LINUX, loader=fake_loader)
        assert path.path == str(lib)

    def test_missing_required(self, tmp_path, fake_loader):
        with pytest.raises(ComponentNotFoundError) as exc:
            get_library([str(tmp_path)], "cublas", platform=LINUX, loader=fake_loader)
        assert exc.value.component == "cublas"
        assert "cublas" in str(exc.value)

    def test_missing_optional(self, tmp_path, fake_loader):
        assert get_library([str(tmp_path)], "cublas", optional=True, platform=LINUX,
                           loader=fake_loader) == (None, None)

    def test_load_error_is_fatal_even_if_optional(self, tmp_path):
        touch(tmp_path / "libcublas.so")
        loader = FakeLoader(reject={"libcublas.so"})
        with pytest.raises(LibraryLoadError) as exc:
            get_library([str(tmp_path)], "cublas", optional=True, platform=LINUX, loader=loader)
        assert exc.value.path == str(tmp_path / "libcublas.so")
        assert isinstance(exc.value.__cause__, OSError)


@skip_on_windows
class TestGetBinary:
    def test_found(self, toolkit):
        path = get_binary([str(toolkit)], "compute-sanitizer")
        assert path.kind == "binary"

    def test_missing(self, tmp_path):
        with pytest.raises(ComponentNotFoundError):
            get_binary([str(tmp_path)], "compute-sanitizer")
        assert get_binary([str(tmp_path)], "compute-sanitizer", optional=True) is None


@skip_on_windows
class TestDiscover:
    def test_full_toolkit(self, toolkit, fake_loader):
        report = discover([str(toolkit)], platform=LINUX, loader=fake_loader)
        assert report.available
        assert report.error is None
        assert report.toolkit_dirs == (str(toolkit),)
        assert list(report.results) == [c.name for c in COMPONENTS]
        assert report.library("cupti") == str(toolkit / "extras" / "CUPTI" / "lib64" / "libcupti.so")
        assert report.binary("compute-sanitizer").endswith("compute-sanitizer")
        assert report.handle("cudart").path == report.library("cudart")
        assert report.library("compute-sanitizer") is None
        assert len(fake_loader.opened) == len(COMPONENTS) - 1

    def test_report_is_immutable(self, toolkit, fake_loader):
        report = discover([str(toolkit)], platform=LINUX, loader=fake_loader)
        with pytest.raises(AttributeError):
            report.available = False
        with pytest.raises(TypeError):
            report.results["cudart"] = None

    def test_missing_required_component(self, tmp_path, fake_loader, quiet_logging):
        report = discover([str(tmp_path)], platform=LINUX, loader=fake_loader)
        assert not report.available
        assert isinstance(report.error, ComponentNotFoundError)
        assert report.error.component == "compute-sanitizer"
        assert fake_loader.opened == []

    def test_stops_at_first_failure(self, toolkit, fake_loader, quiet_logging):
        (toolkit / "lib64" / "libcusparse.so").unlink()
        report = discover([str(toolkit)], platform=LINUX, loader=fake_loader)
        assert not report.available
        assert report.error.component == "cusparse"
        assert report.results["cublasLt"].found
        assert not report.results["cusparse"].found
        assert report.results["cusparse"].error is report.error
        assert "cusolver" not in report.results
        assert "cusolver" not in report.handles

    def test_load_error(self, toolkit, quiet_logging):
        loader = FakeLoader(reject={"libcublas.so"})
        report = discover([str(toolkit)], platform=LINUX, loader=loader)
        assert not report.available
        assert isinstance(report.error, LibraryLoadError)
        assert set(report.handles) == {"cudart", "cufft"}

    def test_error_is_logged(self, tmp_path, fake_loader, caplog):
        caplog.set_level(logging.ERROR, logger="cudisco")
        discover([str(tmp_path)], platform=LINUX, loader=fake_loader)
        assert "Could not (fully) discover the local CUDA toolkit" in caplog.text
        assert "CUDA_PATH" in caplog.text
        assert "compute-sanitizer" in caplog.text

    def test_optional_components_tolerated(self, tmp_path, fake_loader):
        touch(tmp_path / "lib64" / "libcudart.so")
        components = (Component("cudart", "library"),
                      Component("cufft", "library", optional=True),
                      Component("compute-sanitizer", "binary", optional=True))
        report = discover([str(tmp_path)], components, platform=LINUX, loader=fake_loader)
        assert report.available
        assert report.library("cufft") is None
        assert report.binary("compute-sanitizer") is None
        assert set(report.handles) == {"cudart"}

    def test_no_toolkit(self, fake_loader):
        with mock.patch.object(discovery, "find_toolkit", return_value=[]) as ft:
            report = discover(loader=fake_loader)
        ft.assert_called_once()
        assert report.toolkit_dirs == ()
        assert not report.available
        assert report.error is None
        assert fake_loader.opened == []

    def test_finds_toolkit_when_no_dirs_given(self, toolkit, fake_loader):
        with mock.patch.object(discovery, "find_toolkit", return_value=[str(toolkit)]):
            report = discover(platform=LINUX, loader=fake_loader)
        assert report.available


class TestProcessReport:
    def test_computed_once(self):
        report = DiscoveryReport(available=True)
        with mock.patch.object(discovery, "discover", return_value=report) as d:
            assert get_report() is report
            assert get_report() is report
            assert is_available()
        d.assert_called_once_with()

    def test_unavailable_without_toolkit(self):
        with mock.patch.object(discovery, "find_toolkit", return_value=[]):
            assert is_available() is False


class TestComputeSanitizer:
    def _report(self, path):
        result = discovery.DiscoveryResult(
            "compute-sanitizer", "binary", False,
            resolved=discovery.ResolvedPath(path, "binary"))
        return DiscoveryReport(results=discovery._readonly({"compute-sanitizer": result}))

    def test_command(self):
        report = self._report("/cuda/bin/compute-sanitizer")
        assert compute_sanitizer(report) == ["/cuda/bin/compute-sanitizer"]
        assert compute_sanitizer(report, "--tool", "memcheck", "./app") == [
            "/cuda/bin/compute-sanitizer", "--tool", "memcheck", "./app",
        ]

    def test_function_form(self):
        report = self._report("/cuda/bin/compute-sanitizer")
        assert with_compute_sanitizer(report, lambda p: p.upper()) == "/CUDA/BIN/COMPUTE-SANITIZER"

    def test_missing(self):
        with pytest.raises(ComponentNotFoundError):
            compute_sanitizer(DiscoveryReport())
        with pytest.raises(DiscoveryError):
            with_compute_sanitizer(DiscoveryReport(), print)
