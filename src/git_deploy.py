# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Deploy build artifacts to App Service through Git."""

import enum
import logging
import shutil
import tempfile
import typing
from pathlib import Path, PurePosixPath

import file_matcher
from cancellation import CancellationToken
from exceptions import (
    DeployError,
    DeployPushFailedError,
    InvalidConfigError,
    MissingWorkspaceError,
    NoFilesMatchedError,
    StagingFailedError,
)
from git_repository import GitCommandError, GitRepository
from publishing import DeploymentTarget
from state import DeployConfig
from types_ import CommandData, DeploymentResult

logger = logging.getLogger(__name__)

SCRATCH_DIRECTORY_PREFIX = "app-service-deploy-"


class DeployState(str, enum.Enum):
    """States of a deployment.

    Attributes:
        IDLE: The deployment has not started.
        MATCHING: Resolving the files to deploy.
        STAGING: Committing the files to the scratch repository.
        PUSHING: Pushing the commit to the App Service remote.
        SUCCEEDED: The files were deployed.
        FAILED: The deployment failed.
    """

    IDLE = "Idle"
    MATCHING = "Matching"
    STAGING = "Staging"
    PUSHING = "Pushing"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"


_TRANSITIONS: dict[DeployState, frozenset[DeployState]] = {
    DeployState.IDLE: frozenset((DeployState.MATCHING, DeployState.FAILED)),
    DeployState.MATCHING: frozenset((DeployState.STAGING, DeployState.FAILED)),
    DeployState.STAGING: frozenset((DeployState.PUSHING, DeployState.FAILED)),
    DeployState.PUSHING: frozenset((DeployState.SUCCEEDED, DeployState.FAILED)),
    DeployState.SUCCEEDED: frozenset(),
    DeployState.FAILED: frozenset(),
}


def _relative_directory(value: typing.Optional[str], name: str) -> PurePosixPath:
    """Validate a directory given relative to the workspace or repository root.

    Args:
        value: The directory, empty for the root itself.
        name: Name of the setting, for error messages.

    Raises:
        InvalidConfigError: if the directory is absolute or leaves the root.

    Returns:
        The relative directory.
    """
    directory = PurePosixPath((value or "").strip().replace("\\", "/"))
    if directory.is_absolute() or ".." in directory.parts:
        raise InvalidConfigError(f"The {name} {value!r} must be relative and inside the root.")
    return directory


def _copy_files(source_root: Path, files: typing.Iterable[Path], destination: Path) -> int:
    """Copy the files into the destination, keeping their path relative to the source root.

    Args:
        source_root: The directory the files were matched in.
        files: The files to copy.
        destination: The directory to copy the files into.

    Returns:
        The number of copied files.
    """
    copied = 0
    for name in file_matcher.relative_paths(source_root, files):
        target = destination / name
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source_root / name, target)
        copied += 1
    return copied


class Deployment:
    """A single run of the deploy command.

    Attrs:
        state: The current state of the deployment.
    """

    def __init__(
        self, command_data: CommandData, token: typing.Optional[CancellationToken] = None
    ):
        """Construct the deployment.

        Args:
            command_data: The deployment inputs.
            token: Cancellation token of the build.
        """
        self.state = DeployState.IDLE
        self._data = command_data
        self._token = token if token is not None else CancellationToken()

    def _transition(self, new_state: DeployState) -> None:
        """Move the deployment to a new state.

        Args:
            new_state: The state to move to.

        Raises:
            RuntimeError: if the transition is not allowed.
        """
        if new_state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal deployment transition {self.state} -> {new_state}")
        logger.debug("Deployment state %s -> %s", self.state.value, new_state.value)
        self.state = new_state

    def run(self) -> DeploymentResult:
        """Run the deployment.

        Returns:
            The deployment result.
        """
        listener = self._data.listener
        try:
            self._deploy()
        except DeployError as exc:
            self._transition(DeployState.FAILED)
            logger.error("Deployment failed, %s: %s", exc.kind.value, exc.msg)
            listener.error(f"Deployment failed ({exc.kind.value}): {exc.msg}")
            return DeploymentResult.failed(exc)
        except Exception:
            self._transition(DeployState.FAILED)
            raise
        self._transition(DeployState.SUCCEEDED)
        return DeploymentResult.succeeded()

    def _deploy(self) -> None:
        """Match, stage and push the files.

        Raises:
            MissingWorkspaceError: if the build has no workspace.
            NoFilesMatchedError: if no file matched the glob specification.
            StagingFailedError: if the files could not be committed.
            DeployPushFailedError: if the push was rejected or failed.
        """
        listener = self._data.listener
        self._token.raise_if_cancelled()
        self._transition(DeployState.MATCHING)

        build = self._data.build
        workspace = build.workspace
        if workspace is None:
            raise MissingWorkspaceError("The build has no workspace to deploy from.")
        config = DeployConfig.from_environment(build.get_environment(listener))
        source_directory = _relative_directory(self._data.source_directory, "source directory")
        source_root = Path(workspace).joinpath(*source_directory.parts)
        target_directory = _relative_directory(self._data.target_directory, "target directory")
        if target_directory.parts[:1] == (".git",):
            raise InvalidConfigError("The target directory cannot be the .git directory.")

        files = file_matcher.resolve(source_root, self._data.file_path)
        if not files:
            raise NoFilesMatchedError(
                f"No file in {source_root} matches {self._data.file_path!r}."
            )
        listener.info(f"Found {len(files)} file(s) to deploy in {source_root}.")
        target = DeploymentTarget.from_publishing_profile(self._data.publishing_profile)

        self._transition(DeployState.STAGING)
        scratch = Path(tempfile.mkdtemp(prefix=SCRATCH_DIRECTORY_PREFIX))
        try:
            repository = GitRepository(scratch, config, self._token)
            try:
                repository.init()
                copied = _copy_files(
                    source_root, files, scratch.joinpath(*target_directory.parts)
                )
                repository.add_all()
                commit = repository.commit(config.commit_message)
            except GitCommandError as exc:
                raise StagingFailedError(f"Failed to commit the files, {exc.msg}") from exc
            except OSError as exc:
                raise StagingFailedError(f"Failed to copy the files, {exc}") from exc
            listener.info(f"Committed {copied} file(s) as {commit[:12]}: {config.commit_message}")

            self._token.raise_if_cancelled()
            self._transition(DeployState.PUSHING)
            listener.info(f"Pushing to {target.redacted_url} (branch {config.branch}).")
            try:
                repository.push(target, config.branch)
            except GitCommandError as exc:
                raise DeployPushFailedError(
                    f"Failed to push to {target.redacted_url}, {exc.msg}", stderr=exc.stderr
                ) from exc
        finally:
            shutil.rmtree(scratch, ignore_errors=True)

        logger.info("Deployed %d file(s) to %s", len(files), target.redacted_url)
        listener.info(f"Deployed {len(files)} file(s) to {target.redacted_url}.")


class GitDeployCommand:
    """Deploy the files of a build to an App Service Web App with a Git push.

    Attrs:
        deployment: The last deployment run by the command, None before the first run.
        state: The state of the last deployment.
    """

    def __init__(self) -> None:
        """Construct the command."""
        self.deployment: typing.Optional[Deployment] = None

    @property
    def state(self) -> DeployState:
        """Get the state of the last deployment.

        Returns:
            The deployment state, IDLE before the first run.
        """
        if self.deployment is None:
            return DeployState.IDLE
        return self.deployment.state

    def execute(
        self, command_data: CommandData, token: typing.Optional[CancellationToken] = None
    ) -> DeploymentResult:
        """Deploy the files matched in the build workspace.

        Every deployment force pushes a single commit holding exactly the matched files, so the
        remote never accumulates history.

        Args:
            command_data: The deployment inputs.
            token: Cancellation token of the build.

        Returns:
            The deployment result, carrying the kind of failure of a failed deployment.
        """
        self.deployment = Deployment(command_data, token)
        return self.deployment.run()
