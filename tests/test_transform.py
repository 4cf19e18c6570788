"""Tests for transform rules and the built-in build tasks."""

from pathlib import Path

import pytest
from PIL import Image

from sproutforge.core.config import TargetConfig
from sproutforge.core.errors import SproutForgeError
from sproutforge.core.json_canonical import canonical_json_loads
from sproutforge.manifest.manifest import Manifest
from sproutforge.pipelines.builders import add_sprite_entry, input_path, register_default_tasks
from sproutforge.pipelines.transform import TransformPipeline, TransformRule, combine, combine_assets
from sproutforge.project.project import Project
from sproutforge.project.target import Target


@pytest.fixture
def manifest():
    """An empty manifest for a standalone target."""
    return Manifest(Target("app"))


class TestTransformRules:
    """Tests for TransformRule and TransformPipeline."""

    def test_rule_applies_by_extension(self, manifest):
        """Rules should only match their source extension."""
        rule = TransformRule(name="sass", source_ext=".scss", ext="css", build_task="build:sass")
        assert rule.applies_to(manifest.add_entry("a.scss"))
        assert not rule.applies_to(manifest.add_entry("a.css"))

    def test_pipeline_chains_rules(self, manifest):
        """Later rules should see the output of earlier ones."""
        manifest.add_entry("a.scss")
        manifest.add_entry("b.css")
        manifest.add_entry("c.js")

        pipeline = TransformPipeline()
        pipeline.add_rule("sass", "scss", "build:sass", ext="css")
        pipeline.add_rule("minify-css", "css", "build:minify")
        created = pipeline.apply(manifest)

        assert [e.filename for e in created] == ["a.css", "b.css", "a.css"]
        visible = {e.filename: e for e in manifest.entries()}
        assert sorted(visible) == ["a.css", "b.css", "c.js"]
        assert visible["a.css"].build_task == "build:minify"
        assert visible["a.css"]["transformed_by"] == "minify-css"
        assert [e.filename for e in visible["a.css"].lineage()] == ["a.css", "a.css", "a.scss"]

    def test_duplicate_rule_name(self):
        """Rule names should be unique."""
        pipeline = TransformPipeline()
        pipeline.add_rule("sass", "scss", "build:sass", ext="css")
        with pytest.raises(ValueError, match="already exists"):
            pipeline.add_rule("sass", "sass", "build:sass", ext="css")

    def test_fingerprint_changes_with_rules(self):
        """Pipelines with different rules should fingerprint differently."""
        a = TransformPipeline()
        a.add_rule("sass", "scss", "build:sass", ext="css")
        b = TransformPipeline()
        b.add_rule("sass", "scss", "build:sass", ext="css")
        assert a.fingerprint() == b.fingerprint()
        b.add_rule("minify", "css", "build:minify")
        assert a.fingerprint() != b.fingerprint()

    def test_combine(self, manifest):
        """combine should create a hidden-source composite."""
        a = manifest.add_entry("a.js")
        b = manifest.add_entry("b.js")
        result = combine(manifest, "javascript.js", [a, b])
        assert result.build_task == "build:combine"
        assert manifest.entries() == [result]

    def test_combine_assets_respects_config(self):
        """Only enabled asset types should be combined."""
        target = Target("app", config=TargetConfig(combine_stylesheets=False))
        manifest = Manifest(target)
        manifest.add_entry("a.js")
        manifest.add_entry("b.js")
        manifest.add_entry("a.css")
        created = combine_assets(manifest)
        assert [e.filename for e in created] == ["javascript.js"]
        assert sorted(e.filename for e in manifest.entries()) == ["a.css", "javascript.js"]


class TestBuildTasks:
    """Tests for copy, combine and sprite tasks against the filesystem."""

    @pytest.fixture
    def project(self, tmp_path):
        """Project with default tasks writing under tmp_path."""
        project = Project(name="demo", project_root=tmp_path)
        register_default_tasks(project.buildfile)

        @project.buildfile.task("build:upper")
        def build_upper(entry, dst_path, **kwargs):
            dst = Path(dst_path)
            dst.parent.mkdir(parents=True, exist_ok=True)
            dst.write_text(input_path(entry).read_text().upper())

        project.add_target(
            "app",
            config=TargetConfig(
                build_root=str(tmp_path / "build"),
                staging_root=str(tmp_path / "staging"),
            ),
        )
        return project

    @pytest.fixture
    def sources(self, tmp_path):
        """Source files on disk."""
        src = tmp_path / "src"
        src.mkdir()
        (src / "a.js").write_text("var a;")
        (src / "b.js").write_text("var b;")
        (src / "theme.scss").write_text("body {}")
        return src

    def test_copy(self, project, sources):
        """Raw entries should copy their source file."""
        manifest = project.target_for("app").manifest_for("en")
        entry = manifest.add_entry("a.js", source_path=str(sources / "a.js"))
        entry.build()
        assert Path(entry.build_path).read_text() == "var a;"

    def test_copy_without_source_path(self, project):
        """Raw entries without a source path cannot be built."""
        entry = project.target_for("app").manifest_for("en").add_entry("a.js")
        with pytest.raises(SproutForgeError, match="source_path"):
            entry.build()

    def test_combine_builds_in_order(self, project, sources):
        """Combined output should concatenate sources in order."""
        manifest = project.target_for("app").manifest_for("en")
        a = manifest.add_entry("a.js", source_path=str(sources / "a.js"))
        b = manifest.add_entry("b.js", source_path=str(sources / "b.js"))
        combined = combine(manifest, "javascript.js", [b, a])
        combined.build()
        assert Path(combined.build_path).read_text() == "var b;\nvar a;"

    def test_chain_stages_every_step(self, project, sources):
        """Building a chain should stage intermediate entries."""
        manifest = project.target_for("app").manifest_for("en")
        raw = manifest.add_entry("theme.scss", source_path=str(sources / "theme.scss"))
        css = manifest.add_transform(raw, ext="css", build_task="build:upper")
        final = manifest.add_transform(css)
        stylesheet = combine(manifest, "stylesheet.css", [final])

        stylesheet.build()

        assert Path(css.staging_path).read_text() == "BODY {}"
        assert Path(final.staging_path).read_text() == "BODY {}"
        assert Path(stylesheet.build_path).read_text() == "BODY {}"

    def test_sprite_task(self, project, tmp_path):
        """The sprite task should write sheets and slice offsets."""
        images = tmp_path / "images"
        images.mkdir()
        Image.new("RGBA", (4, 2), (255, 0, 0, 255)).save(images / "a.png")
        Image.new("RGBA", (3, 3), (0, 0, 255, 255)).save(images / "b.png")

        manifest = project.target_for("app").manifest_for("en")
        a = manifest.add_entry("images/a.png", source_path=str(images / "a.png"))
        b = manifest.add_entry("images/b.png", source_path=str(images / "b.png"))
        sprites = add_sprite_entry(manifest, [a, b])
        sprites.build()

        assert a.hidden and b.hidden
        out = Path(sprites.build_path)
        offsets = canonical_json_loads(out.read_text())
        assert offsets["images/b.png"]["y"] == 2
        assert offsets["images/b.png"]["background_position"] == "0 -2px"
        assert sprites["slices"]["images/a.png"]["sprite"] == "no-repeat.png"

        with Image.open(out.parent / "no-repeat.png") as sheet:
            assert sheet.size == (4, 5)
            assert sheet.getpixel((0, 0)) == (255, 0, 0, 255)
            assert sheet.getpixel((0, 2)) == (0, 0, 255, 255)
