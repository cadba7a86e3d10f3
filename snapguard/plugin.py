"""pytest plugin: run-mode options, the ``snapshot`` fixture and suite cleanup."""

from __future__ import annotations

import pytest

from snapguard.core.config import SnapshotConfig, load_config
from snapguard.core.errors import SnapshotError, UnusedSnapshotsError
from snapguard.core.types import LoadOutcome, RunMode
from snapguard.snapshotter import Snapshotter
from snapguard.store.directory import DEFAULT_SNAPSHOTS_DIR
from snapguard.store.snapshot_store import SnapshotStore

_STORE = pytest.StashKey[SnapshotStore]()
_SKIPPED = pytest.StashKey[list]()
_UNUSED = pytest.StashKey[UnusedSnapshotsError]()
_CLEANUP_ERROR = pytest.StashKey[SnapshotError]()
_DESELECTED = pytest.StashKey[bool]()


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("snapguard", "snapshot testing")
    group.addoption(
        "--snapshot-update",
        action="store_true",
        default=False,
        help="Create missing snapshots, rewrite mismatching ones and drop unused ones",
    )
    parser.addini("snapshot_dir", "Snapshot directory name", default=DEFAULT_SNAPSHOTS_DIR)
    parser.addini("snapshot_config", "Path of the snapguard.json config file", default="")


def run_mode(config: pytest.Config) -> RunMode:
    """
    Update mode comes from ``--snapshot-update``. A narrowed run is a single
    run: it cannot tell which snapshots are unused. A run is narrowed by
    ``-k``, ``-m``, ``--lf``, a deselected item, or positional arguments
    other than the invocation directory and the ``testpaths`` entries.
    """
    opt = config.option
    single_run = bool(
        getattr(opt, "keyword", "")
        or getattr(opt, "markexpr", "")
        or getattr(opt, "lf", False)
        or config.stash.get(_DESELECTED, False)
        or _narrowed_by_args(config)
    )
    return RunMode(update=config.getoption("--snapshot-update"), single_run=single_run)


def _narrowed_by_args(config: pytest.Config) -> bool:
    if config.args_source is not pytest.Config.ArgsSource.ARGS:
        return False
    invocation_dir = config.invocation_params.dir
    full_suite = {invocation_dir.resolve()}
    full_suite.update((config.rootpath / p).resolve() for p in config.getini("testpaths"))
    for arg in config.args:
        if "::" in arg or (invocation_dir / arg).resolve() not in full_suite:
            return True
    return False


def pytest_deselected(items: list[pytest.Item]) -> None:
    if items:
        items[0].config.stash[_DESELECTED] = True


@pytest.fixture(scope="session")
def snapshot_config(pytestconfig: pytest.Config) -> SnapshotConfig:
    path = pytestconfig.getini("snapshot_config")
    if path:
        return load_config(pytestconfig.rootpath / path)
    return load_config(pytestconfig.invocation_params.dir)


@pytest.fixture(scope="session")
def snapshot_store(pytestconfig: pytest.Config) -> SnapshotStore:
    skipped: list[LoadOutcome] = []
    store = SnapshotStore(
        root=pytestconfig.invocation_params.dir,
        snapshots_dir=pytestconfig.getini("snapshot_dir"),
        on_skip=skipped.append,
    )
    pytestconfig.stash[_STORE] = store
    pytestconfig.stash[_SKIPPED] = skipped
    return store


@pytest.fixture
def snapshot(
    request: pytest.FixtureRequest,
    snapshot_store: SnapshotStore,
    snapshot_config: SnapshotConfig,
) -> Snapshotter:
    """A ``Snapshotter`` whose new snapshots go to ``<test directory name>.snapshot``."""
    return Snapshotter(
        snapshot_store,
        config=snapshot_config,
        mode=run_mode(request.config),
        package=request.path.parent.name,
    )


@pytest.hookimpl(trylast=True)
def pytest_sessionfinish(session: pytest.Session, exitstatus: int) -> None:
    store = session.config.stash.get(_STORE, None)
    if store is None or exitstatus != pytest.ExitCode.OK:
        return
    try:
        Snapshotter(store, mode=run_mode(session.config)).cleanup_or_fail()
    except UnusedSnapshotsError as exc:
        session.config.stash[_UNUSED] = exc
        session.exitstatus = pytest.ExitCode.TESTS_FAILED
    except SnapshotError as exc:
        session.config.stash[_CLEANUP_ERROR] = exc
        session.exitstatus = pytest.ExitCode.TESTS_FAILED


def pytest_terminal_summary(terminalreporter, exitstatus: int, config: pytest.Config) -> None:
    skipped = config.stash.get(_SKIPPED, [])
    unused = config.stash.get(_UNUSED, None)
    cleanup_error = config.stash.get(_CLEANUP_ERROR, None)
    if not skipped and unused is None and cleanup_error is None:
        return
    terminalreporter.section("snapguard")
    for outcome in skipped:
        terminalreporter.write_line(f"Skipped unreadable snapshot file {outcome.path}: {outcome.error}", yellow=True)
    if unused is not None:
        for snapshot_id in unused.ids:
            terminalreporter.write_line(f"Unused snapshot `{snapshot_id}`")
        terminalreporter.write_line(f"{unused}; rerun with --snapshot-update to remove them", red=True)
    if cleanup_error is not None:
        terminalreporter.write_line(f"Snapshot cleanup failed: {cleanup_error}", red=True)
