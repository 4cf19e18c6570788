"""Tests for fuzzy and cross-target entry lookup."""

import pytest

from sproutforge.core.config import TargetConfig
from sproutforge.core.errors import TargetNotFoundError
from sproutforge.manifest.manifest import Manifest
from sproutforge.project.project import Project
from sproutforge.project.target import Target


@pytest.fixture
def manifest():
    """An empty manifest for a standalone target."""
    return Manifest(Target("app"))


def make_project(requirements):
    """Build a project whose targets require each other as given."""
    project = Project(name="test")
    for name, required in requirements.items():
        project.add_target(name, config=TargetConfig(required=required))
    return project


class TestLocalLookup:
    """Tests for find_entry within one manifest."""

    def test_extensionless_query_matches_root(self, manifest):
        """A query without extension should match on the root name."""
        button = manifest.add_entry("icons/button.png")
        manifest.add_entry("icons/button-active.png")
        assert manifest.find_entry("button") is button

    def test_suffix_needs_path_boundary(self, manifest):
        """A root that merely ends with the same characters should not match."""
        manifest.add_entry("settings-button.png")
        assert manifest.find_entry("button") is None

    def test_exact_root_matches(self, manifest):
        """A root equal to the query should match."""
        entry = manifest.add_entry("button.png")
        assert manifest.find_entry("button") is entry

    def test_extension_must_match_when_given(self, manifest):
        """An explicit extension should exclude other types."""
        manifest.add_entry("images/logo.png")
        svg = manifest.add_entry("images/logo.svg")
        assert manifest.find_entry("logo.svg") is svg
        assert manifest.find_entry("logo.gif") is None

    def test_partial_path_matches(self, manifest):
        """Leading directories may be omitted or included."""
        entry = manifest.add_entry("english.lproj/images/logo.png")
        assert manifest.find_entry("images/logo") is entry
        assert manifest.find_entry("/images/logo.png") is entry

    def test_first_added_wins(self, manifest):
        """Insertion order should break ties."""
        first = manifest.add_entry("a/logo.png")
        manifest.add_entry("b/logo.png")
        assert manifest.find_entry("logo") is first

    def test_hidden_only_on_request(self, manifest):
        """Hidden entries should be found only with hidden=True."""
        entry = manifest.add_entry("logo.png")
        entry.hide()
        assert manifest.find_entry("logo") is None
        assert manifest.find_entry("logo", hidden=True) is entry

    def test_filters_apply(self, manifest):
        """Extra options should narrow the lookup."""
        manifest.add_entry("desktop/logo.png", platform="desktop")
        mobile = manifest.add_entry("mobile/logo.png", platform="mobile")
        assert manifest.find_entry("logo", platform="mobile") is mobile


class TestCrossTargetLookup:
    """Tests for find_entry across required targets."""

    def test_found_in_required_target(self):
        """Misses should fall through to required targets."""
        project = make_project({"app": ["framework"], "framework": []})
        logo = project.target_for("framework").manifest_for("en").add_entry("images/logo.png")
        app_manifest = project.target_for("app").manifest_for("en")
        assert app_manifest.find_entry("logo") is logo

    def test_local_entry_preferred(self):
        """Local matches should win over required targets."""
        project = make_project({"app": ["framework"], "framework": []})
        project.target_for("framework").manifest_for("en").add_entry("logo.png")
        local = project.target_for("app").manifest_for("en").add_entry("logo.png")
        assert project.target_for("app").manifest_for("en").find_entry("logo") is local

    def test_depth_first_order(self):
        """Required targets should be searched depth first in declaration order."""
        project = make_project(
            {"app": ["ui", "data"], "ui": ["foundation"], "data": [], "foundation": []}
        )
        deep = project.target_for("foundation").manifest_for("en").add_entry("logo.png")
        project.target_for("data").manifest_for("en").add_entry("logo.png")
        assert project.target_for("app").manifest_for("en").find_entry("logo") is deep

    def test_cycles_terminate(self):
        """Cyclic requirements should not recurse forever."""
        project = make_project({"app": ["framework"], "framework": ["app"]})
        assert project.target_for("app").manifest_for("en").find_entry("missing") is None

    def test_same_language_only(self):
        """Only manifests of the same language should be searched."""
        project = make_project({"app": ["framework"], "framework": []})
        project.target_for("framework").manifest_for("fr").add_entry("logo.png")
        assert project.target_for("app").manifest_for("en").find_entry("logo") is None

    def test_required_manifests_are_prepared(self):
        """Searching should prepare the required target's manifest."""
        project = make_project({"app": ["framework"], "framework": []})
        project.target_for("app").manifest_for("en").find_entry("logo")
        assert project.target_for("framework").manifest_for("en").prepared is True

    def test_unknown_required_target(self):
        """Misses should surface an undefined required target."""
        project = make_project({"app": ["ghost"]})
        with pytest.raises(TargetNotFoundError, match="ghost"):
            project.target_for("app").manifest_for("en").find_entry("logo")
