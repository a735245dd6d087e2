"""Pipeline orchestrator — gather, plan, execute.

The Orchestrator wires together the CommitProvider, the System capability
and the flake reference model into a single switch pipeline:

1. **Gather** (concurrent): commit id, hostname, username, a fresh
   temporary directory, tool presence and NixOS detection.  Every branch
   runs to completion before anything is decided.
2. **Plan**: pin the base flake reference and derive the buildables.
3. **Execute** (sequential, fail-fast): build, switch system, switch
   user, clean up.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from switcher.config import SwitcherConfig
from switcher.core.flake_ref import FlakeRef
from switcher.core.system import LocalSystem, System
from switcher.errors import MissingToolError, PreconditionError, SwitcherError
from switcher.models.commit import CommitRef
from switcher.models.facts import SystemFacts, missing_tools
from switcher.models.plan import BuildableKind, BuildPlan
from switcher.provider import CommitProvider
from switcher.provider.github import GitHubClient, gh_cli_token, static_token

logger = logging.getLogger(__name__)


def default_provider(config: SwitcherConfig, system: System) -> CommitProvider:
    """Build the production CommitProvider for *config*."""
    if config.github_token is not None:
        token_source = static_token(config.github_token.get_secret_value())
    else:
        token_source = gh_cli_token(system, config.credential_tool)
    github = GitHubClient(
        token_source,
        endpoint=config.github_endpoint,
        timeout=config.http_timeout,
    )
    return CommitProvider(github)


class Orchestrator:
    """Central switch pipeline.

    Parameters
    ----------
    config:
        Runtime configuration.
    system:
        System capability.  Uses ``LocalSystem`` if not provided.
    provider:
        Commit provider.  Built from *config* if not provided.

    Raises
    ------
    InvalidUrlError
        If the configured flake reference cannot be parsed.
    PreconditionError
        If the configured flake reference already carries a fragment.
    """

    def __init__(
        self,
        config: SwitcherConfig,
        system: System | None = None,
        provider: CommitProvider | None = None,
    ) -> None:
        self.config = config
        self.system: System = system or LocalSystem()
        self.provider = provider or default_provider(config, self.system)

        self.base_flake = FlakeRef.parse(config.repo_flake())
        if self.base_flake.fragment() is not None:
            raise PreconditionError(
                f"flake reference {self.base_flake} must not contain a fragment"
            )

    # ------------------------------------------------------------------
    # Tool requirements
    # ------------------------------------------------------------------

    def candidate_tools(self) -> list[str]:
        """Every tool this invocation might need, checked during gather."""
        tools = [self.config.build_tool]
        if self.config.activate_system:
            tools.append(self.config.system_switch_tool)
        if self.config.activate_user:
            tools.append(self.config.user_switch_tool)
        if self.config.github_token is None:
            tools.append(self.config.credential_tool)
        return tools

    def required_tools(self, is_nixos: bool) -> list[str]:
        """The subset of :meth:`candidate_tools` that must be present."""
        return [
            tool
            for tool in self.candidate_tools()
            if tool != self.config.system_switch_tool or is_nixos
        ]

    async def _check_tools(self) -> dict[str, Path | None]:
        tools = self.candidate_tools()
        found = await asyncio.gather(*(self.system.which(tool) for tool in tools))
        return dict(zip(tools, found))

    # ------------------------------------------------------------------
    # Phase 1: gather
    # ------------------------------------------------------------------

    async def gather(self) -> tuple[str, SystemFacts]:
        """Collect the commit id and system facts concurrently.

        All branches complete before any decision is taken.  A missing
        required tool takes precedence over other branch failures.

        Raises
        ------
        MissingToolError
            If a required tool is not installed (fatal).
        SwitcherError
            The first failing branch's error, in branch order.
        """
        logger.info("Gathering info")

        results = await asyncio.gather(
            self.provider.resolve(self.base_flake),
            self.system.get_hostname(),
            self.system.get_username(),
            self.system.make_temp_dir(),
            self._check_tools(),
            self.system.is_nixos(),
            return_exceptions=True,
        )
        commit_id, hostname, username, temp_dir, tools, is_nixos = results

        if isinstance(tools, dict):
            nixos = is_nixos if isinstance(is_nixos, bool) else False
            missing = missing_tools(tools, self.required_tools(nixos))
            if missing:
                if isinstance(temp_dir, Path):
                    logger.warning("leaving temporary directory %s behind", temp_dir)
                msg = f"required tool(s) not found: {', '.join(missing)}"
                logger.critical(msg)
                raise MissingToolError(missing)

        for result in results:
            if isinstance(result, BaseException):
                if isinstance(temp_dir, Path):
                    logger.warning("leaving temporary directory %s behind", temp_dir)
                logger.error("gathering info failed: %s", result)
                raise result

        facts = SystemFacts(
            hostname=hostname,
            username=username,
            temp_dir=temp_dir,
            tools=tools,
            is_nixos=is_nixos,
        )
        logger.info(
            "Gathered info: commit=%s host=%s user=%s temp=%s nixos=%s",
            commit_id,
            facts.hostname,
            facts.username,
            facts.temp_dir,
            facts.is_nixos,
        )
        return commit_id, facts

    # ------------------------------------------------------------------
    # Phase 2: plan
    # ------------------------------------------------------------------

    def pin(self, commit_id: str) -> FlakeRef:
        """Return a copy of the base reference pinned to *commit_id*.

        The branch path segments are dropped: once the commit is known the
        branch is redundant.  Other query pairs are kept.

        Raises
        ------
        InvalidPathError
            If the base path is not ``owner/repo[/branch]``.
        """
        pinned = self.base_flake.clone()
        commit_ref = CommitRef.from_path(pinned.path)
        pinned.set_path(f"{commit_ref.owner}/{commit_ref.repository}")
        return pinned.set_commit_id(commit_id)

    def plan(self, commit_id: str, facts: SystemFacts) -> BuildPlan:
        """Pin the base reference and assemble the build plan.

        Raises
        ------
        PreconditionError
            If no host is known or nothing would be built.
        InvalidPathError
            If the base path is not ``owner/repo[/branch]``.
        """
        host = self.config.host or facts.hostname
        if not host:
            raise PreconditionError("host is unknown; pass --host or configure 'host'")

        users = list(self.config.users) or [facts.username]

        pinned = self.pin(commit_id)
        logger.info("built base flake ref %s", pinned)

        if self.config.activate_system and not facts.is_nixos:
            logger.info("%s is not a NixOS, skipping system configuration", host)

        plan = BuildPlan(
            base=pinned,
            host=host,
            users=users,
            activate_system=self.config.activate_system,
            activate_user=self.config.activate_user,
            is_nixos=facts.is_nixos,
        )

        buildables = plan.buildables()
        if not buildables:
            raise PreconditionError("nothing to build: all activators are disabled")

        logger.info("collected buildables: %s", [b.flake for b in buildables])
        return plan

    # ------------------------------------------------------------------
    # Phase 3: execute
    # ------------------------------------------------------------------

    async def execute(self, plan: BuildPlan, facts: SystemFacts) -> None:
        """Build and switch, then remove the temporary directory.

        The temporary directory is removed on failure as well, including
        cancellation (Ctrl-C), unless ``keep_temp_on_failure`` is set.  A
        cleanup error on the failure path is logged and the original error
        is raised.
        """
        try:
            await self._build(plan, facts.temp_dir / "result")
            if plan.includes_system:
                await self._switch_system(plan)
            if plan.includes_users:
                await self._switch_user(plan, facts.username)
        except BaseException:
            await self._cleanup_after_failure(facts.temp_dir)
            raise

        await self._cleanup(facts.temp_dir)

    async def _build(self, plan: BuildPlan, out_link: Path) -> None:
        buildables = plan.buildables()
        # system toplevel first, then the users' activation packages
        ordered = [b for b in buildables if b.kind is BuildableKind.SYSTEM]
        ordered += [b for b in buildables if b.kind is BuildableKind.USER]

        logger.info("Starting to build")
        await self.system.run_interactive(
            self.config.build_tool,
            "build",
            "--keep-going",
            "-L",
            "--out-link",
            str(out_link),
            *(b.flake for b in ordered),
        )
        logger.info("Finished building")

    async def _switch_system(self, plan: BuildPlan) -> None:
        logger.info("Switching system configuration of %s", plan.host)
        await self.system.run_interactive(
            self.config.system_switch_tool,
            "switch",
            "--use-remote-sudo",
            "--flake",
            plan.system_switch_target(),
        )
        logger.info("Switched system configuration of %s", plan.host)

    async def _switch_user(self, plan: BuildPlan, current_user: str) -> None:
        # home-manager can only activate the invoking user's configuration
        if current_user not in plan.users:
            logger.info(
                "%s is not among the built users, skipping user activation", current_user
            )
            return
        logger.info("Switching user configuration of %s@%s", current_user, plan.host)
        await self.system.run_interactive(
            self.config.user_switch_tool,
            "switch",
            "--flake",
            plan.user_switch_target(current_user),
        )
        logger.info("Switched user configuration of %s@%s", current_user, plan.host)

    async def _cleanup(self, temp_dir: Path) -> None:
        logger.info("Cleaning up %s", temp_dir)
        await self.system.remove_dir(temp_dir)

    async def _cleanup_after_failure(self, temp_dir: Path) -> None:
        # never masks the error that is already propagating
        if self.config.keep_temp_on_failure:
            logger.warning("keeping %s for inspection", temp_dir)
            return
        try:
            await self._cleanup(temp_dir)
        except SwitcherError as exc:
            logger.error("cleanup of %s failed: %s", temp_dir, exc)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def run(self) -> BuildPlan:
        """Run the whole pipeline and return the executed plan."""
        commit_id, facts = await self.gather()
        try:
            plan = self.plan(commit_id, facts)
        except SwitcherError:
            await self._cleanup_after_failure(facts.temp_dir)
            raise
        await self.execute(plan, facts)
        return plan

    async def preview(self) -> BuildPlan:
        """Gather and plan without building or switching anything."""
        commit_id, facts = await self.gather()
        try:
            plan = self.plan(commit_id, facts)
        except SwitcherError:
            await self._cleanup_after_failure(facts.temp_dir)
            raise
        await self._cleanup(facts.temp_dir)
        return plan
