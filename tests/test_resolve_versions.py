"""Tests for the public resolve_versions entry point."""

import logging

import pytest

from registry.local import LocalPackageFetcher
from versioning.errors import FetchError, LockConflict, ProviderFailure, ResolutionFailure
from versioning.ranges import Range
from versioning.service import resolve_versions
from versioning.version import parse_version

from helpers import gleam_registry, make_package, make_release


def v(text):
    return parse_version(text)


def resolve(requirements, locked=None, fetcher=None, provided=None, root="root_name"):
    return resolve_versions(
        fetcher or gleam_registry(),
        provided or {},
        root,
        [(name, Range(raw)) for name, raw in requirements.items()],
        locked or {},
    )


class TestResolveVersions:
    """Test resolution against the small gleam registry."""

    def test_with_locked(self):
        result = resolve({"gleam_stdlib": "~> 0.1"}, locked={"gleam_stdlib": v("0.1.0")})
        assert result == {"gleam_stdlib": v("0.1.0")}

    def test_without_deps(self):
        """An empty requirement set resolves to nothing."""
        assert resolve({}) == {}

    def test_one_dep(self):
        assert resolve({"gleam_stdlib": "~> 0.1"}) == {"gleam_stdlib": v("0.3.0")}

    def test_nested_deps(self):
        result = resolve({"gleam_otp": "~> 0.1"})
        assert result == {"gleam_otp": v("0.2.0"), "gleam_stdlib": v("0.3.0")}

    def test_locked_to_older_version(self):
        result = resolve({"gleam_otp": "~> 0.1.0"})
        assert result == {"gleam_otp": v("0.1.0"), "gleam_stdlib": v("0.3.0")}

    def test_retired_versions_not_used_by_default(self):
        result = resolve({"package_with_retired": "> 0.0.0"})
        assert result == {"package_with_retired": v("0.1.0")}

    def test_retired_versions_can_be_used_if_locked(self):
        result = resolve(
            {"package_with_retired": "> 0.0.0"},
            locked={"package_with_retired": v("0.2.0")},
        )
        assert result == {"package_with_retired": v("0.2.0")}

    def test_prerelease_can_be_selected(self):
        result = resolve({"gleam_otp": "~> 0.3.0-rc1"})
        assert result == {"gleam_otp": v("0.3.0-rc2"), "gleam_stdlib": v("0.3.0")}

    def test_exact_prerelease_can_be_selected(self):
        """A bare prerelease literal pins exactly that prerelease."""
        result = resolve({"gleam_otp": "0.3.0-rc1"})
        assert result == {"gleam_otp": v("0.3.0-rc1"), "gleam_stdlib": v("0.3.0")}

    def test_exact_dep(self):
        assert resolve({"gleam_stdlib": "0.1.0"}) == {"gleam_stdlib": v("0.1.0")}
        assert resolve({"gleam_stdlib": "== 0.2.2"}) == {"gleam_stdlib": v("0.2.2")}

    def test_unconstrained_prefers_stable(self):
        result = resolve({"gleam_otp": "*"})
        assert result["gleam_otp"] == v("0.2.0")

    def test_not_found_dep(self):
        with pytest.raises(ResolutionFailure) as excinfo:
            resolve({"unknown": "~> 0.1"})
        assert "unknown" in str(excinfo.value)

    def test_not_found_dep_is_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="versioning.service"):
            with pytest.raises(ResolutionFailure):
                resolve({"unknown": "~> 0.1"})
        assert "Packages not found in the registry: unknown" in caplog.text

    def test_no_matching_version(self):
        with pytest.raises(ResolutionFailure) as excinfo:
            resolve({"gleam_stdlib": "~> 99.0"})
        assert "version solving failed" in str(excinfo.value)
        assert excinfo.value.incompatibility is not None

    def test_locked_version_doesnt_satisfy_requirements(self):
        with pytest.raises(LockConflict) as excinfo:
            resolve({"gleam_stdlib": "~> 0.1.0"}, locked={"gleam_stdlib": v("0.2.0")})
        assert str(excinfo.value) == (
            "gleam_stdlib is specified with the requirement `~> 0.1.0`, "
            "but it is locked to 0.2.0, which is incompatible."
        )

    def test_lock_without_explicit_requirement_is_kept(self):
        result = resolve({"gleam_otp": "~> 0.1"}, locked={"gleam_stdlib": v("0.2.0")})
        assert result == {"gleam_otp": v("0.2.0"), "gleam_stdlib": v("0.2.0")}

    def test_root_name_is_removed(self):
        result = resolve({"gleam_stdlib": "~> 0.1"}, root="gleam_app")
        assert "gleam_app" not in result

    def test_provided_packages_bypass_fetcher(self):
        provided = {"local_lib": make_package("local_lib", make_release("1.0.0", {"gleam_stdlib": "~> 0.2"}))}
        result = resolve({"local_lib": "1.0.0"}, provided=provided)
        assert result == {"local_lib": v("1.0.0"), "gleam_stdlib": v("0.3.0")}

    def test_provider_failure_aborts(self):
        fetcher = gleam_registry()

        def fail(name):
            raise FetchError("registry unavailable")

        fetcher.fetch = fail
        with pytest.raises(ProviderFailure) as excinfo:
            resolve({"gleam_stdlib": "~> 0.1"}, fetcher=fetcher)
        assert excinfo.value.package == "gleam_stdlib"


class TestResolutionBehaviour:
    """Test transitive consistency and backtracking."""

    def test_transitive_ranges_are_all_satisfied(self):
        fetcher = LocalPackageFetcher(
            {
                "a": make_package("a", make_release("1.0.0", {"b": "~> 1.0"})),
                "b": make_package(
                    "b",
                    make_release("1.0.0", {"c": ">= 1.0.0 and < 1.5.0"}),
                    make_release("1.1.0", {"c": ">= 1.2.0"}),
                ),
                "c": make_package(
                    "c", make_release("1.0.0"), make_release("1.3.0"), make_release("2.0.0")
                ),
                "d": make_package("d", make_release("1.0.0", {"c": "< 2.0.0"})),
            }
        )
        result = resolve({"a": "*", "d": "*"}, fetcher=fetcher)
        assert result == {"a": v("1.0.0"), "b": v("1.1.0"), "c": v("1.3.0"), "d": v("1.0.0")}

    def test_backtracks_from_unsatisfiable_newest_version(self):
        """The newest version needs a release that does not exist."""
        fetcher = LocalPackageFetcher(
            {
                "a": make_package(
                    "a", make_release("1.0.0"), make_release("2.0.0", {"b": "9.0.0"})
                ),
                "b": make_package("b", make_release("1.0.0")),
            }
        )
        assert resolve({"a": "*"}, fetcher=fetcher) == {"a": v("1.0.0")}

    def test_backs_off_past_partially_satisfied_requirement(self):
        """Dropping foo 1.1.0 must not forget the root's pin on target."""
        fetcher = LocalPackageFetcher(
            {
                "foo": make_package(
                    "foo",
                    make_release("1.0.0"),
                    make_release("1.1.0", {"left": "~> 1.0", "right": "~> 1.0"}),
                ),
                "left": make_package("left", make_release("1.0.0", {"shared": ">= 1.0.0"})),
                "right": make_package("right", make_release("1.0.0", {"shared": "< 2.0.0"})),
                "shared": make_package(
                    "shared", make_release("1.0.0", {"target": "~> 1.0"}), make_release("2.0.0")
                ),
                "target": make_package("target", make_release("1.0.0"), make_release("2.0.0")),
            }
        )
        result = resolve({"foo": "~> 1.0", "target": "2.0.0"}, fetcher=fetcher)
        assert result == {"foo": v("1.0.0"), "target": v("2.0.0")}

    def test_unknown_transitive_dependency_is_avoided(self):
        fetcher = LocalPackageFetcher(
            {
                "a": make_package(
                    "a", make_release("0.9.0"), make_release("1.0.0", {"ghost": ">= 1.0.0"})
                ),
            }
        )
        assert resolve({"a": "*"}, fetcher=fetcher) == {"a": v("0.9.0")}

    def test_retired_transitive_version_is_skipped(self):
        fetcher = LocalPackageFetcher(
            {
                "a": make_package("a", make_release("1.0.0", {"b": ">= 1.0.0"})),
                "b": make_package(
                    "b", make_release("1.0.0"), make_release("1.1.0", retired="broken build")
                ),
            }
        )
        assert resolve({"a": "*"}, fetcher=fetcher) == {"a": v("1.0.0"), "b": v("1.0.0")}


# Many exact root pins plus one unconstrained package; every pinned package has
# exactly its pinned version available and wisp has fourteen releases.
ISSUE_3201_ROOT_PINS = {
    "bigben": "1.0.0",
    "gleam_stdlib": "0.38.0",
    "gleam_javascript": "0.8.0",
    "gleam_community_colour": "1.4.0",
    "gleam_community_ansi": "1.4.0",
    "gleam_erlang": "0.25.0",
    "tom": "0.3.0",
    "thoas": "1.2.1",
    "glint": "1.0.0-rc2",
    "snag": "0.3.0",
    "gleam_otp": "0.10.0",
    "simplifile": "1.7.0",
    "ranger": "1.2.0",
    "exception": "2.0.0",
    "filepath": "1.0.0",
    "gleam_json": "1.0.1",
    "startest": "0.2.4",
    "argv": "1.0.2",
    "birl": "1.7.0",
}

ISSUE_3201_DEPENDENCIES = {
    "birl": {
        "gleam_stdlib": ">= 0.37.0 and < 2.0.0",
        "ranger": ">= 1.2.0 and < 2.0.0",
    },
    "bigben": {
        "gleam_otp": ">= 0.10.0 and < 1.0.0",
        "gleam_stdlib": ">= 0.34.0 and < 2.0.0",
        "gleam_erlang": ">= 0.25.0 and < 1.0.0",
        "birl": ">= 1.6.0 and < 2.0.0",
    },
    "gleam_javascript": {"gleam_stdlib": ">= 0.19.0 and < 2.0.0"},
    "gleam_community_colour": {
        "gleam_stdlib": ">= 0.34.0 and < 1.0.0",
        "gleam_json": ">= 0.7.0 and < 2.0.0",
    },
    "gleam_community_ansi": {
        "gleam_community_colour": ">= 1.3.0 and < 2.0.0",
        "gleam_stdlib": ">= 0.34.0 and < 1.0.0",
    },
    "gleam_erlang": {"gleam_stdlib": ">= 0.33.0 and < 2.0.0"},
    "tom": {"gleam_stdlib": ">= 0.33.0 and < 1.0.0"},
    "glint": {
        "gleam_community_colour": ">= 1.0.0 and < 2.0.0",
        "gleam_community_ansi": ">= 1.0.0 and < 2.0.0",
        "snag": ">= 0.3.0 and < 1.0.0",
        "gleam_stdlib": ">= 0.36.0 and < 2.0.0",
    },
    "snag": {"gleam_stdlib": ">= 0.34.0 and < 1.0.0"},
    "gleam_otp": {
        "gleam_erlang": ">= 0.22.0 and < 1.0.0",
        "gleam_stdlib": ">= 0.32.0 and < 1.0.0",
    },
    "exception": {"gleam_stdlib": ">= 0.30.0 and < 2.0.0"},
    "ranger": {"gleam_stdlib": ">= 0.36.0 and < 2.0.0"},
    "simplifile": {
        "filepath": ">= 1.0.0 and < 2.0.0",
        "gleam_stdlib": ">= 0.34.0 and < 2.0.0",
    },
    "filepath": {"gleam_stdlib": ">= 0.32.0 and < 1.0.0"},
    "startest": {
        "argv": ">= 1.0.2 and < 2.0.0",
        "gleam_stdlib": ">= 0.36.0 and < 2.0.0",
        "exception": ">= 2.0.0 and < 3.0.0",
        "simplifile": ">= 1.7.0 and < 2.0.0",
        "gleam_javascript": ">= 0.8.0 and < 1.0.0",
        "gleam_community_ansi": ">= 1.4.0 and < 2.0.0",
        "gleam_erlang": ">= 0.25.0 and < 1.0.0",
        "tom": ">= 0.3.0 and < 1.0.0",
        "glint": ">= 1.0.0-rc2 and < 1.0.0-rc3",
        "bigben": ">= 1.0.0 and < 2.0.0",
        "birl": ">= 1.6.1 and < 2.0.0",
    },
}


class TestIssue3201Regression:
    """Regression: prerelease bounds inside a large, fully pinned graph."""

    @pytest.fixture
    def fetcher(self):
        packages = {
            name: make_package(name, make_release(version, ISSUE_3201_DEPENDENCIES.get(name)))
            for name, version in ISSUE_3201_ROOT_PINS.items()
        }
        packages["wisp"] = make_package(
            "wisp", *(make_release(f"0.{minor}.0") for minor in range(1, 15))
        )
        return LocalPackageFetcher(packages)

    def test_resolves(self, fetcher):
        requirements = dict(ISSUE_3201_ROOT_PINS, wisp="*")
        result = resolve(requirements, fetcher=fetcher, root="gleam_add_issue_2024_05_26")
        expected = {name: v(version) for name, version in ISSUE_3201_ROOT_PINS.items()}
        expected["wisp"] = v("0.14.0")
        assert result == expected
