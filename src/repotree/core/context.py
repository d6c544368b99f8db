"""Application context with dependency injection."""

from dataclasses import dataclass
from pathlib import Path

from repotree.core.config_store import ConfigStore, GlobalConfig, RealConfigStore
from repotree.core.repo_ops.abc import RepoOps
from repotree.core.repo_ops.dry_run import DryRunRepoOps
from repotree.core.repo_ops.real import RealRepoOps
from repotree.core.tag_dates.abc import TagDates
from repotree.core.tag_dates.real import RealTagDates
from repotree.core.user_feedback import InteractiveFeedback, UserFeedback


@dataclass(frozen=True)
class RepoTreeContext:
    """Immutable context holding all dependencies for repotree operations.

    Created at CLI entry point and threaded through the application.
    Frozen to prevent accidental modification at runtime.
    """

    repo_ops: RepoOps
    tag_dates: TagDates
    config_store: ConfigStore
    feedback: UserFeedback
    cwd: Path  # Current working directory at CLI invocation
    global_config: GlobalConfig
    dry_run: bool

    @staticmethod
    def for_test(
        repo_ops: RepoOps | None = None,
        tag_dates: TagDates | None = None,
        config_store: ConfigStore | None = None,
        feedback: UserFeedback | None = None,
        cwd: Path | None = None,
        global_config: GlobalConfig | None = None,
        dry_run: bool = False,
    ) -> "RepoTreeContext":
        """Create test context with optional pre-configured collaborators.

        Unspecified collaborators default to empty in-memory fakes.

        Args:
            repo_ops: Optional RepoOps. If None, creates empty FakeRepoOps.
            tag_dates: Optional TagDates. If None, creates FakeTagDates with no dates.
            config_store: Optional ConfigStore. If None, creates FakeConfigStore.
            feedback: Optional UserFeedback. If None, creates FakeUserFeedback.
            cwd: Optional working directory. If None, uses Path("/test/default/cwd").
            global_config: Optional GlobalConfig. If None, uses defaults.
            dry_run: Whether to enable dry-run mode.
        """
        from tests.fakes.config_store import FakeConfigStore
        from tests.fakes.repo_ops import FakeRepoOps
        from tests.fakes.tag_dates import FakeTagDates
        from tests.fakes.user_feedback import FakeUserFeedback

        if global_config is None:
            global_config = GlobalConfig()

        return RepoTreeContext(
            repo_ops=repo_ops or FakeRepoOps(),
            tag_dates=tag_dates or FakeTagDates(),
            config_store=config_store or FakeConfigStore(config=global_config),
            feedback=feedback or FakeUserFeedback(),
            cwd=cwd or Path("/test/default/cwd"),
            global_config=global_config,
            dry_run=dry_run,
        )


def create_context(*, dry_run: bool, feedback: UserFeedback | None = None) -> RepoTreeContext:
    """Create production context with real implementations.

    Called at CLI entry point to create the context for the entire
    command execution.

    Args:
        dry_run: If True, wrap repository operations so that they print
                 intended actions without executing them
        feedback: Progress output; defaults to InteractiveFeedback

    Returns:
        RepoTreeContext with real implementations
    """
    # 1. Capture cwd (no deps)
    cwd = Path.cwd()

    # 2. Load global config (missing file yields defaults)
    config_store = RealConfigStore()
    global_config = config_store.load()

    # 3. Create ops, wrapped for dry-run if needed
    repo_ops: RepoOps = RealRepoOps()
    if dry_run:
        repo_ops = DryRunRepoOps(repo_ops)

    return RepoTreeContext(
        repo_ops=repo_ops,
        tag_dates=RealTagDates(),
        config_store=config_store,
        feedback=feedback or InteractiveFeedback(),
        cwd=cwd,
        global_config=global_config,
        dry_run=dry_run,
    )


def regenerate_context(
    existing: RepoTreeContext, *, dry_run: bool, feedback: UserFeedback
) -> RepoTreeContext:
    """Return a copy of existing with dry-run and feedback applied.

    Used by commands whose flags change how collaborators behave after the
    context was built at entry point (or injected by tests).
    """
    repo_ops = existing.repo_ops
    if dry_run and not existing.dry_run:
        repo_ops = DryRunRepoOps(repo_ops)
    return RepoTreeContext(
        repo_ops=repo_ops,
        tag_dates=existing.tag_dates,
        config_store=existing.config_store,
        feedback=feedback,
        cwd=existing.cwd,
        global_config=existing.global_config,
        dry_run=dry_run or existing.dry_run,
    )
