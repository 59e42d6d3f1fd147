"""Integration tests for fixing a small source tree end-to-end.

Covers directory expansion, in-place rewriting, backups and a second pass over
already fixed files.
"""

from pathlib import Path

import pytest

from promise_rejection_fixer.config.runtime_config import RuntimeConfig
from promise_rejection_fixer.core.fixer import PromiseFixer
from promise_rejection_fixer.core.models import HandlingPattern

USERS_MODULE = """\
export function loadUsers() {
  return api.get("/users").then((users) => {
    render(users);
  });
}

export function loadConfig() {
  api.get("/config").then(function (cfg) {
    apply(cfg);
  }, function (err) {
    warn(err);
  });
}

export const ping = () => api.ping().then(ok).catch(noop);
"""

FIXED_USERS_MODULE = USERS_MODULE.replace(
    "    render(users);\n  });", "    render(users);\n  }).catch(noop);"
)


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """Create a project tree with sources, a vendored dependency and a non-source file."""
    root = tmp_path / "project"
    (root / "src" / "lib").mkdir(parents=True)
    (root / "node_modules" / "left-pad").mkdir(parents=True)

    (root / "src" / "users.js").write_text(USERS_MODULE, encoding="utf-8")
    (root / "src" / "lib" / "start.ts").write_text("a().then(doStuff)", encoding="utf-8")
    (root / "src" / "README.md").write_text("Call `p.then(x)` here.\n", encoding="utf-8")
    (root / "node_modules" / "left-pad" / "index.js").write_text(
        "p.then(x);\n", encoding="utf-8"
    )
    return root


def test_fix_tree(project: Path) -> None:
    fixer = PromiseFixer(RuntimeConfig.from_defaults(), workspace_root=project)

    files = fixer.collect_source_files(["."])
    results = fixer.fix_files(files)

    assert [Path(result.path).name for result in results] == ["start.ts", "users.js"]
    start, users = results

    assert [verdict.pattern for verdict in users.verdicts] == [
        HandlingPattern.NONE,
        HandlingPattern.SECOND_CALLBACK,
        HandlingPattern.CHAINED_CATCH,
    ]
    assert users.written is True
    assert (project / "src" / "users.js").read_text(encoding="utf-8") == FIXED_USERS_MODULE

    assert start.edits[0].offset == 17
    assert (project / "src" / "lib" / "start.ts").read_text(encoding="utf-8") == (
        "a().then(doStuff).catch(noop);"
    )

    assert (project / "node_modules" / "left-pad" / "index.js").read_text(
        encoding="utf-8"
    ) == "p.then(x);\n"
    assert (project / "src" / "README.md").read_text(encoding="utf-8") == (
        "Call `p.then(x)` here.\n"
    )


def test_second_run_changes_nothing(project: Path) -> None:
    fixer = PromiseFixer(RuntimeConfig.from_defaults(), workspace_root=project)
    fixer.fix_files(fixer.collect_source_files(["src"]))

    results = fixer.fix_files(fixer.collect_source_files(["src"]))

    assert all(not result.edits for result in results)
    assert all(not result.written for result in results)
    assert (project / "src" / "users.js").read_text(encoding="utf-8") == FIXED_USERS_MODULE


def test_dry_run_then_apply(project: Path) -> None:
    dry_config = RuntimeConfig.from_defaults().merge_with_cli(mode="dry-run")
    preview = PromiseFixer(dry_config, workspace_root=project).fix_file("src/users.js")

    assert (project / "src" / "users.js").read_text(encoding="utf-8") == USERS_MODULE

    applied = PromiseFixer(workspace_root=project).fix_file("src/users.js")

    assert preview.fixed_text == applied.fixed_text == FIXED_USERS_MODULE


def test_backups_are_created_per_file(project: Path) -> None:
    config = RuntimeConfig.from_defaults().merge_with_cli(create_backup=True)
    fixer = PromiseFixer(config, workspace_root=project)

    results = fixer.fix_files(fixer.collect_source_files(["src"]))

    backups = sorted(Path(result.backup_path).name for result in results if result.backup_path)
    assert backups == ["start.ts.backup", "users.js.backup"]
    assert (project / "src" / "users.js.backup").read_text(encoding="utf-8") == USERS_MODULE


def test_restricted_extensions(project: Path) -> None:
    config = RuntimeConfig.from_defaults().merge_with_cli(extensions=(".ts",))
    fixer = PromiseFixer(config, workspace_root=project)

    files = fixer.collect_source_files(["src"])

    assert [path.name for path in files] == ["start.ts"]
