"""Tests for LocalModuleFinder.

Focus on search order, the filter gate, per-root error handling and
context replay.
"""

import contextvars
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from module_finder.context import current_principal
from module_finder.descriptor import MODULE_FILE
from module_finder.descriptor import parse_module_descriptor
from module_finder.errors import ModuleAccessDeniedError
from module_finder.errors import ModuleLoadError
from module_finder.errors import ModuleNotFoundError
from module_finder.errors import NameFormatError
from module_finder.filters import match
from module_finder.filters import reject_all
from module_finder.finder import LocalModuleFinder
from module_finder.roots import MODULE_PATH_ENV


class RecordingParser:
    """Parser double recording every call; returns a marker per root."""

    def __init__(self, results=None):
        self.calls: list[tuple] = []
        self.results = results or {}

    def __call__(self, delegate_loader, name, module_root, descriptor):
        self.calls.append((delegate_loader, name, module_root, descriptor))
        for root, result in self.results.items():
            if Path(root) in module_root.parents:
                if isinstance(result, Exception):
                    raise result
                return result
        return parse_module_descriptor(delegate_loader, name, module_root, descriptor)


class TestSearchOrder:
    def test_not_found_in_single_root(self, repo_roots):
        finder = LocalModuleFinder(repo_roots[:1])
        with pytest.raises(ModuleNotFoundError) as exc_info:
            finder.find_module("a.b")
        assert MODULE_FILE in str(exc_info.value)
        assert "a.b" in str(exc_info.value)
        assert exc_info.value.descriptor_name == MODULE_FILE
        assert exc_info.value.module_name == "a.b"

    def test_found_in_second_root(self, repo_roots, make_module):
        module_dir = make_module(repo_roots[1], "a.b")
        spec = LocalModuleFinder(repo_roots[:2]).find_module("a.b")
        assert spec.module_root == module_dir
        assert spec.name == "a.b"

    def test_empty_root_list(self):
        finder = LocalModuleFinder([])
        with pytest.raises(ModuleNotFoundError):
            finder.find_module("any.module")

    def test_first_match_wins(self, repo_roots, make_module):
        first = make_module(repo_roots[0], "a.b")
        make_module(repo_roots[1], "a.b")
        parser = RecordingParser()
        sink = logging.getLogger("test.finder.first_match")
        sink.setLevel(logging.DEBUG)
        sink.propagate = False
        records = []
        handler = logging.Handler()
        handler.emit = records.append
        sink.addHandler(handler)
        try:
            spec = LocalModuleFinder(repo_roots, parser=parser, diagnostics=sink).find_module("a.b")
        finally:
            sink.removeHandler(handler)

        assert spec.module_root == first
        assert len(parser.calls) == 1
        probes = [r for r in records if getattr(r, "event", None) == "module:probe"]
        assert len(probes) == 1
        assert str(repo_roots[0]) in probes[0].getMessage()

    def test_only_holder_wins_regardless_of_position(self, repo_roots, make_module):
        for index, root in enumerate(repo_roots):
            make_module(root, f"m{index}.x")
        finder = LocalModuleFinder(repo_roots)
        for index, root in enumerate(repo_roots):
            assert finder.find_module(f"m{index}.x").module_root.is_relative_to(root)

    def test_leading_dot_cannot_escape_roots(self, repo_roots):
        with pytest.raises(NameFormatError):
            LocalModuleFinder(repo_roots).find_module(".etc.x")

    def test_slot_selects_directory(self, repo_roots, make_module):
        make_module(repo_roots[0], "a.b")
        slot_dir = make_module(repo_roots[1], "a.b:2")
        spec = LocalModuleFinder(repo_roots).find_module("a.b:2")
        assert spec.module_root == slot_dir
        assert spec.slot == "2"

    def test_current_layout_is_not_probed(self, repo_roots):
        module_dir = repo_roots[0] / "a" / "b"
        module_dir.mkdir(parents=True)
        (module_dir / MODULE_FILE).write_text("name: a.b\n")
        with pytest.raises(ModuleNotFoundError):
            LocalModuleFinder(repo_roots).find_module("a.b")

    def test_missing_root_directory_is_skipped(self, tmp_path, make_module):
        real = tmp_path / "real"
        make_module(real, "a.b")
        spec = LocalModuleFinder([tmp_path / "does-not-exist", real]).find_module("a.b")
        assert spec.module_root.is_relative_to(real)

    def test_root_that_is_a_file_is_skipped(self, tmp_path, make_module):
        not_a_dir = tmp_path / "file-root"
        not_a_dir.write_text("")
        real = tmp_path / "real"
        make_module(real, "a.b")
        spec = LocalModuleFinder([not_a_dir, real]).find_module("a.b")
        assert spec.module_root.is_relative_to(real)

    def test_delegate_loader_passed_to_parser(self, repo_roots, make_module):
        make_module(repo_roots[0], "a.b")
        parser = RecordingParser()
        delegate = object()
        LocalModuleFinder(repo_roots, parser=parser).find_module("a.b", delegate)
        assert parser.calls[0][0] is delegate
        assert parser.calls[0][1] == "a.b"
        assert parser.calls[0][3] == parser.calls[0][2] / MODULE_FILE


class TestEmptyDescriptorAbort:
    def test_empty_descriptor_stops_search(self, repo_roots, make_module):
        make_module(repo_roots[0], "a.b", content="")
        make_module(repo_roots[1], "a.b")
        with pytest.raises(ModuleNotFoundError):
            LocalModuleFinder(repo_roots).find_module("a.b")

    def test_later_roots_not_parsed_after_abort(self, repo_roots, make_module):
        make_module(repo_roots[0], "a.b")
        make_module(repo_roots[1], "a.b")
        parser = RecordingParser({repo_roots[0]: None})
        with pytest.raises(ModuleNotFoundError):
            LocalModuleFinder(repo_roots, parser=parser).find_module("a.b")
        assert len(parser.calls) == 1


class TestPathFilter:
    def test_rejected_name_returns_none(self, repo_roots, make_module):
        make_module(repo_roots[0], "x.y")
        assert LocalModuleFinder(repo_roots, reject_all()).find_module("x.y") is None

    def test_rejected_name_never_touches_filesystem(self, repo_roots, monkeypatch):
        def forbidden(*args, **kwargs):
            raise AssertionError("filesystem accessed")

        monkeypatch.setattr("module_finder.finder.open", forbidden, raising=False)
        parser = RecordingParser()
        finder = LocalModuleFinder(repo_roots, reject_all(), parser=parser)

        assert finder.find_module("x.y") is None
        assert parser.calls == []

    def test_filter_sees_both_forms_with_trailing_slash(self, repo_roots):
        seen = []

        def recording(path):
            seen.append(path)
            return False

        LocalModuleFinder(repo_roots, recording).find_module("foo.bar:slot1")
        assert seen == ["foo/bar:slot1/", "foo/bar/slot1/"]

    def test_current_form_acceptance_is_enough(self, repo_roots, make_module):
        make_module(repo_roots[0], "org.example")
        finder = LocalModuleFinder(repo_roots, lambda p: p == "org/example/")
        assert finder.find_module("org.example").name == "org.example"

    def test_legacy_form_acceptance_is_enough(self, repo_roots, make_module):
        make_module(repo_roots[0], "org.example")
        finder = LocalModuleFinder(repo_roots, match("org/example/main/"))
        assert finder.find_module("org.example").name == "org.example"

    def test_accepted_but_missing_is_not_found(self, repo_roots):
        with pytest.raises(ModuleNotFoundError):
            LocalModuleFinder(repo_roots, match("org/**")).find_module("org.example")

    def test_malformed_name_fails_before_filter(self, repo_roots):
        with pytest.raises(NameFormatError):
            LocalModuleFinder(repo_roots, reject_all()).find_module("a.b:")


class TestProbeErrors:
    def test_permission_denied_fails_immediately(self, repo_roots, make_module, monkeypatch):
        denied = make_module(repo_roots[0], "a.b") / MODULE_FILE
        make_module(repo_roots[1], "a.b")
        real_open = open

        def guarded_open(path, *args, **kwargs):
            if Path(path) == denied:
                raise PermissionError(13, "Permission denied", str(path))
            return real_open(path, *args, **kwargs)

        monkeypatch.setattr("module_finder.finder.open", guarded_open, raising=False)
        with pytest.raises(ModuleAccessDeniedError) as exc_info:
            LocalModuleFinder(repo_roots).find_module("a.b")
        assert exc_info.value.path == denied
        assert isinstance(exc_info.value.__cause__, PermissionError)
        assert isinstance(exc_info.value, ModuleLoadError)

    def test_other_io_error_logged_and_skipped(self, repo_roots, make_module, caplog):
        # A directory where the descriptor should be cannot be opened for reading
        (repo_roots[0] / "a" / "b" / "main" / MODULE_FILE).mkdir(parents=True)
        module_dir = make_module(repo_roots[1], "a.b")

        with caplog.at_level(logging.WARNING, logger="module_finder.finder"):
            spec = LocalModuleFinder(repo_roots).find_module("a.b")

        assert spec.module_root == module_dir
        failures = [r for r in caplog.records if getattr(r, "event", None) == "module:probe_failed"]
        assert len(failures) == 1
        assert failures[0].path == str(repo_roots[0] / "a" / "b" / "main" / MODULE_FILE)

    def test_injected_diagnostics_sink(self, repo_roots, make_module):
        (repo_roots[0] / "a" / "b" / "main" / MODULE_FILE).mkdir(parents=True)
        make_module(repo_roots[1], "a.b")
        records = []

        class Collect(logging.Handler):
            def emit(self, record):
                records.append(record)

        sink = logging.getLogger("test.finder.sink")
        sink.setLevel(logging.DEBUG)
        sink.propagate = False
        handler = Collect()
        sink.addHandler(handler)
        try:
            LocalModuleFinder(repo_roots, diagnostics=sink).find_module("a.b")
        finally:
            sink.removeHandler(handler)

        events = [getattr(r, "event", None) for r in records]
        assert events.count("module:probe") == 2
        assert "module:probe_failed" in events
        assert events[-1] == "module:found"

    def test_parser_error_aborts_search(self, repo_roots, make_module):
        make_module(repo_roots[0], "a.b", content="name: [broken\n")
        make_module(repo_roots[1], "a.b")
        with pytest.raises(ModuleLoadError) as exc_info:
            LocalModuleFinder(repo_roots).find_module("a.b")
        assert not isinstance(exc_info.value, ModuleNotFoundError)

    def test_parser_io_error_wrapped(self, repo_roots, make_module):
        make_module(repo_roots[0], "a.b")
        parser = RecordingParser({repo_roots[0]: OSError("disk went away")})
        with pytest.raises(ModuleLoadError) as exc_info:
            LocalModuleFinder(repo_roots, parser=parser).find_module("a.b")
        assert "disk went away" in str(exc_info.value)


class TestSingleRootArgument:
    def test_bare_path_is_not_split_into_characters(self, tmp_path, make_module):
        make_module(tmp_path, "a.b")
        with pytest.raises(TypeError):
            LocalModuleFinder(str(tmp_path))
        with pytest.raises(TypeError):
            LocalModuleFinder(tmp_path)
        assert LocalModuleFinder([tmp_path]).find_module("a.b").module_root.is_relative_to(tmp_path)


class TestImmutability:
    def test_mutating_callers_list_has_no_effect(self, repo_roots, make_module):
        first = make_module(repo_roots[0], "a.b")
        make_module(repo_roots[1], "a.b")
        caller_roots = list(repo_roots)
        finder = LocalModuleFinder(caller_roots)

        caller_roots.reverse()
        caller_roots.clear()

        assert finder.find_module("a.b").module_root == first
        assert list(finder.roots) == repo_roots

    def test_context_captured_at_construction(self, repo_roots, make_module):
        make_module(repo_roots[0], "a.b")
        seen = []

        def parser(delegate_loader, name, module_root, descriptor):
            seen.append(current_principal.get())
            return parse_module_descriptor(delegate_loader, name, module_root, descriptor)

        token = current_principal.set("installer")
        try:
            finder = LocalModuleFinder(repo_roots, parser=parser)
        finally:
            current_principal.reset(token)

        token = current_principal.set("intruder")
        try:
            finder.find_module("a.b")
        finally:
            current_principal.reset(token)

        assert seen == ["installer"]
        assert finder.context.get(current_principal) == "installer"

    def test_search_cannot_change_callers_context(self, repo_roots, make_module):
        make_module(repo_roots[0], "a.b")
        marker: contextvars.ContextVar[str] = contextvars.ContextVar("marker", default="outside")

        def parser(delegate_loader, name, module_root, descriptor):
            marker.set("inside")
            return parse_module_descriptor(delegate_loader, name, module_root, descriptor)

        LocalModuleFinder(repo_roots, parser=parser).find_module("a.b")
        assert marker.get() == "outside"

    def test_concurrent_lookups(self, repo_roots, make_module):
        names = [f"pkg{i}.mod" for i in range(20)]
        for i, name in enumerate(names):
            make_module(repo_roots[i % len(repo_roots)], name)
        finder = LocalModuleFinder(repo_roots)

        with ThreadPoolExecutor(max_workers=8) as pool:
            specs = list(pool.map(finder.find_module, names * 5))

        assert [s.name for s in specs] == names * 5


class TestConstruction:
    def test_from_module_path(self, tmp_path, make_module):
        first, second = tmp_path / "one", tmp_path / "two"
        make_module(second, "a.b")
        first.mkdir()
        finder = LocalModuleFinder.from_module_path(False, os.pathsep.join([str(first), str(second)]))
        assert list(finder.roots) == [first, second]
        assert finder.find_module("a.b").module_root.is_relative_to(second)

    def test_from_environment_with_layers(self, tmp_path, make_module, monkeypatch):
        base = tmp_path / "system" / "layers" / "base"
        make_module(base, "a.b")
        monkeypatch.setenv(MODULE_PATH_ENV, str(tmp_path))
        finder = LocalModuleFinder.from_module_path()
        assert list(finder.roots) == [tmp_path, base]
        assert finder.find_module("a.b").module_root.is_relative_to(base)

    def test_str_lists_roots_in_order(self, repo_roots):
        finder = LocalModuleFinder(repo_roots)
        text = str(finder)
        assert text.startswith("local module finder @")
        assert text.endswith(f"(roots: {repo_roots[0]},{repo_roots[1]},{repo_roots[2]})")
        assert repr(finder) == text

    def test_str_with_no_roots(self):
        assert str(LocalModuleFinder([])).endswith("(roots: )")
