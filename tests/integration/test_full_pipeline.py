"""Integration test — full build and typo-build through the Orchestrator.

Builds a realistic modpack checkout in tmp_path and serves its external
jars from the in-memory artifact server, then checks the shared output
tree, the dependency cache and re-run behaviour.
"""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

from packsmith.core.orchestrator import Orchestrator
from packsmith.errors import HashMismatchError, StageError
from packsmith.models.pipeline import StageStatus

JAR_A = b"jar A contents"
JAR_B = b"jar B contents"
URL_A = "https://cdn.example/files/1/jei.jar"
URL_B = "https://cdn.example/files/2/ctm.jar"


@pytest.fixture
def modpack(source_dir: Path, artifact_server) -> dict:
    """Lay out a modpack checkout and publish its jars."""
    sha_a = artifact_server.add(URL_A, JAR_A)
    sha_b = artifact_server.add(URL_B, JAR_B)
    manifest = {
        "name": "Integration Pack",
        "version": "1.4.0",
        "author": "ci",
        "minecraft": {"version": "1.12.2"},
        "externalDependencies": [
            {"url": URL_A, "sha": sha_a},
            {"url": URL_B, "sha": sha_b},
        ],
    }
    files = {
        "manifest.json": json.dumps(manifest),
        "overrides/config/pack.cfg": "pack.version=@VERSION@\n",
        "overrides/config/betterquesting/DefaultQuests.json": json.dumps(
            {"quests": [{"id": 1, "editor_only": True}], "snap_to_grid": 8}
        ),
        "overrides/scripts/recipes.zs": "// recipes\n",
        "pack-mode-switcher.sh": "#!/bin/sh\n",
        "CHANGELOG.md": "# 1.4.0\n- Added JEI\n",
    }
    for rel, text in files.items():
        path = source_dir / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text)
    return {"manifest": manifest, "sha_a": sha_a, "sha_b": sha_b}


def _run(settings, http_client, pipeline: str):
    with Orchestrator(settings, client=http_client) as orchestrator:
        return orchestrator.run_named(pipeline)


# ---------------------------------------------------------------------------
# Test: full build
# ---------------------------------------------------------------------------


class TestFullBuild:
    def test_output_tree(self, settings, http_client, modpack):
        run = _run(settings, http_client, "build")
        shared = run.context.paths.shared_dest_dir
        overrides = shared / "overrides"

        assert [r.status for r in run.records] == [StageStatus.PASSED] * 9
        assert (overrides / "config" / "pack.cfg").read_text() == "pack.version=1.4.0\n"
        assert (overrides / "scripts" / "recipes.zs").exists()
        assert (overrides / "pack-mode-switcher.sh").exists()
        assert json.loads(
            (overrides / "config" / "betterquesting" / "DefaultQuests.json").read_text()
        ) == {"quests": [{"id": 1}]}
        assert (shared / "CHANGELOG.md").read_text() == "# 1.4.0\n- Added JEI\n"

    def test_written_manifest_has_no_dependency_list(self, settings, http_client, modpack):
        run = _run(settings, http_client, "build")

        written = json.loads((run.context.paths.shared_dest_dir / "manifest.json").read_text())
        expected = {k: v for k, v in modpack["manifest"].items() if k != "externalDependencies"}
        assert written == expected

    def test_mods_link_into_the_cache(self, settings, http_client, modpack, artifact_server):
        run = _run(settings, http_client, "build")
        mods = run.context.paths.mods_dir
        cache_dir = run.context.paths.cache_dir

        jei = mods / "jei.jar"
        assert jei.is_symlink()
        sha_a = modpack["sha_a"]
        assert Path(os.path.realpath(jei)) == (cache_dir / "sha1" / sha_a[:2] / sha_a).resolve()
        assert (mods / "ctm.jar").read_bytes() == JAR_B
        assert artifact_server.total_requests == 2

    def test_rebuild_uses_the_cache(self, settings, http_client, modpack, artifact_server):
        _run(settings, http_client, "build")
        run = _run(settings, http_client, "build")

        assert artifact_server.total_requests == 2
        assert (run.context.paths.mods_dir / "jei.jar").read_bytes() == JAR_A

    def test_skip_changelog(self, settings, http_client, modpack):
        settings = settings.model_copy(update={"skip_changelog": True})
        run = _run(settings, http_client, "build")

        statuses = {r.stage_id: r.status for r in run.records}
        assert statuses["create_changelog"] == StageStatus.SKIPPED
        assert run.skipped_count == 1
        assert not (run.context.paths.shared_dest_dir / "CHANGELOG.md").exists()

    def test_stale_output_is_cleaned(self, settings, http_client, modpack):
        stale = settings.to_paths().shared_dest_dir / "overrides" / "removed.cfg"
        stale.parent.mkdir(parents=True)
        stale.write_text("old")

        _run(settings, http_client, "build")

        assert not stale.exists()


# ---------------------------------------------------------------------------
# Test: failure mid-pipeline
# ---------------------------------------------------------------------------


class TestFailedBuild:
    def test_mismatch_stops_before_manifest_is_written(
        self, settings, http_client, modpack, source_dir
    ):
        manifest = dict(modpack["manifest"])
        manifest["externalDependencies"] = [
            {"url": URL_A, "sha": modpack["sha_a"]},
            {"url": URL_B, "sha": "0" * 40},
        ]
        (source_dir / "manifest.json").write_text(json.dumps(manifest))

        with pytest.raises(StageError) as excinfo:
            _run(settings, http_client, "build")

        assert excinfo.value.stage_id == "fetch_external_dependencies"
        assert isinstance(excinfo.value.cause, HashMismatchError)
        shared = settings.to_paths().shared_dest_dir
        assert not (shared / "manifest.json").exists()
        assert not (shared / "CHANGELOG.md").exists()

    def test_rebuild_after_fix_succeeds(self, settings, http_client, modpack, source_dir):
        good = json.dumps(modpack["manifest"])
        bad = dict(modpack["manifest"])
        bad["externalDependencies"] = [{"url": URL_B, "sha": "0" * 40}]
        (source_dir / "manifest.json").write_text(json.dumps(bad))
        with pytest.raises(StageError):
            _run(settings, http_client, "build")

        (source_dir / "manifest.json").write_text(good)
        run = _run(settings, http_client, "build")

        assert (run.context.paths.shared_dest_dir / "manifest.json").exists()
        assert (run.context.paths.mods_dir / "ctm.jar").read_bytes() == JAR_B


# ---------------------------------------------------------------------------
# Test: typo-build
# ---------------------------------------------------------------------------


class TestTypoBuild:
    def test_reduced_pipeline(self, settings, http_client, modpack, artifact_server):
        run = _run(settings, http_client, "typo-build")
        shared = run.context.paths.shared_dest_dir

        assert [r.stage_id for r in run.records] == [
            "shared_cleanup",
            "create_shared_dirs",
            "copy_overrides",
            "transform_quest_book",
        ]
        assert artifact_server.total_requests == 0
        assert not (shared / "manifest.json").exists()
        assert not (shared / "mods").exists()
        # No version stamping in the reduced pipeline.
        assert (shared / "overrides" / "config" / "pack.cfg").read_text() == (
            "pack.version=@VERSION@\n"
        )
