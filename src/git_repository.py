# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Scratch Git repository used to push deployments."""

import contextlib
import logging
import os
import signal
import subprocess  # nosec B404
import time
import typing
from pathlib import Path

from cancellation import CancellationToken
from exceptions import CancelledError
from publishing import DeploymentTarget
from state import DeployConfig

logger = logging.getLogger(__name__)

GIT_EXECUTABLE = "git"
# How often a running git command is checked for cancellation.
POLL_INTERVAL = 0.5
# Variables of the host environment that would point git at another repository.
_REPOSITORY_ENV_NAMES = ("GIT_DIR", "GIT_WORK_TREE", "GIT_INDEX_FILE", "GIT_OBJECT_DIRECTORY")


class GitCommandError(Exception):
    """A git command failed.

    Attributes:
        msg: Explanation of the error.
        command: The git sub command that failed.
        returncode: The exit code of git, None if it did not run to completion.
        stderr: The error output of git.
    """

    def __init__(
        self, msg: str, command: str, returncode: typing.Optional[int] = None, stderr: str = ""
    ):
        """Initialize a new instance of the GitCommandError exception.

        Args:
            msg: Explanation of the error.
            command: The git sub command that failed.
            returncode: The exit code of git.
            stderr: The error output of git.
        """
        super().__init__(msg)
        self.msg = msg
        self.command = command
        self.returncode = returncode
        self.stderr = stderr


def _auth_environment(target: DeploymentTarget) -> dict[str, str]:
    """Get the environment passing the remote credentials to git.

    The credentials go through the environment so they never show up in the process arguments
    or in the repository configuration.

    Args:
        target: The deployment target.

    Returns:
        The environment variables configuring the authorization header.
    """
    if not target.url.lower().startswith(("http://", "https://")):
        return {}
    return {
        "GIT_CONFIG_COUNT": "1",
        "GIT_CONFIG_KEY_0": "http.extraHeader",
        "GIT_CONFIG_VALUE_0": target.basic_auth_header(),
    }


def _kill(process: subprocess.Popen) -> None:
    """Kill git and the helpers it started, e.g. git-remote-https.

    The helpers inherit the output pipes of git, so reading the output of a killed git blocks
    until every helper of its process group exits.

    Args:
        process: The git process, leader of its own process group.
    """
    # The whole group already exited.
    with contextlib.suppress(ProcessLookupError):
        os.killpg(process.pid, signal.SIGKILL)


class GitRepository:
    """Git repository in a scratch directory.

    Attrs:
        path: The working tree of the repository.
    """

    def __init__(
        self,
        path: Path,
        config: DeployConfig,
        token: typing.Optional[CancellationToken] = None,
    ):
        """Construct the repository wrapper.

        Args:
            path: The working tree of the repository.
            config: The deployment configuration.
            token: Cancellation token checked while git runs.
        """
        self.path = path
        self._config = config
        self._token = token if token is not None else CancellationToken()

    def _environment(self, extra: typing.Optional[dict[str, str]] = None) -> dict[str, str]:
        """Get the environment git runs with.

        Args:
            extra: Additional variables.

        Returns:
            The process environment.
        """
        env = {
            name: value
            for name, value in os.environ.items()
            if name not in _REPOSITORY_ENV_NAMES
        }
        env.update(
            {
                "GIT_TERMINAL_PROMPT": "0",
                "GIT_AUTHOR_NAME": self._config.author_name,
                "GIT_AUTHOR_EMAIL": self._config.author_email,
                "GIT_COMMITTER_NAME": self._config.author_name,
                "GIT_COMMITTER_EMAIL": self._config.author_email,
            }
        )
        if extra:
            env.update(extra)
        return env

    def _run(self, *args: str, env: typing.Optional[dict[str, str]] = None) -> str:
        """Run a git command in the repository.

        Args:
            args: The git arguments, starting with the sub command.
            env: Additional environment variables.

        Raises:
            GitCommandError: if git is missing, exits with an error or runs past its timeout.
            CancelledError: if the cancellation token fired while git was running.

        Returns:
            The standard output of git.
        """
        command = args[0]
        self._token.raise_if_cancelled()
        logger.debug("Running git %s in %s", command, self.path)
        try:
            # The arguments are built by this module, never from a shell string.
            process = subprocess.Popen(  # nosec B603
                [GIT_EXECUTABLE, *args],
                cwd=self.path,
                env=self._environment(env),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                start_new_session=True,
            )
        except OSError as exc:
            raise GitCommandError(f"Failed to run git {command}, {exc}", command=command) from exc

        deadline = time.monotonic() + self._config.git_timeout
        while True:
            try:
                stdout, stderr = process.communicate(timeout=POLL_INTERVAL)
                break
            except subprocess.TimeoutExpired:
                if self._token.cancelled:
                    _kill(process)
                    process.communicate()
                    logger.warning("Cancelled git %s", command)
                    raise CancelledError(f"Deployment cancelled while running git {command}.")
                if time.monotonic() >= deadline:
                    _kill(process)
                    _, stderr = process.communicate()
                    raise GitCommandError(
                        f"git {command} timed out after {self._config.git_timeout} seconds",
                        command=command,
                        stderr=stderr,
                    )

        if process.returncode != 0:
            logger.error("git %s exited with %s, %s", command, process.returncode, stderr.strip())
            raise GitCommandError(
                f"git {command} exited with code {process.returncode}: {stderr.strip()}",
                command=command,
                returncode=process.returncode,
                stderr=stderr,
            )
        return stdout

    def init(self) -> None:
        """Create the repository."""
        self._run("init", "--quiet")
        self._run("config", "core.autocrlf", "false")

    def add_all(self) -> None:
        """Stage every file of the working tree."""
        self._run("add", "--all", "--force", ".")

    def commit(self, message: str) -> str:
        """Commit the staged files.

        Args:
            message: The commit message.

        Returns:
            The commit hash.
        """
        self._run("commit", "--quiet", "--no-verify", "--no-gpg-sign", "-m", message)
        return self._run("rev-parse", "HEAD").strip()

    def push(self, target: DeploymentTarget, branch: str) -> None:
        """Force push HEAD to the branch of the target, replacing its history.

        Args:
            target: The deployment target.
            branch: The remote branch.
        """
        self._run(
            "push",
            "--force",
            "--quiet",
            target.url,
            f"HEAD:refs/heads/{branch}",
            env=_auth_environment(target),
        )
