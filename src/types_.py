# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Types shared between the deploy command and the build host."""

import dataclasses
import sys
import typing
from pathlib import Path

from exceptions import DeployError, ErrorKind
from publishing import PublishingProfile


class Listener(typing.Protocol):
    """The build log of the running build."""

    def info(self, message: str) -> None:
        """Write an informational line to the build log.

        Args:
            message: The line to write.
        """

    def error(self, message: str) -> None:
        """Write an error line to the build log.

        Args:
            message: The line to write.
        """


class StreamListener:
    """Listener writing the build log to a text stream."""

    def __init__(self, stream: typing.Optional[typing.TextIO] = None):
        """Construct the listener.

        Args:
            stream: The stream to write to, standard output if not given.
        """
        self._stream = stream if stream is not None else sys.stdout

    def info(self, message: str) -> None:
        """Write an informational line.

        Args:
            message: The line to write.
        """
        self._stream.write(f"{message}\n")
        self._stream.flush()

    def error(self, message: str) -> None:
        """Write an error line.

        Args:
            message: The line to write.
        """
        self._stream.write(f"ERROR: {message}\n")
        self._stream.flush()


class Build(typing.Protocol):
    """The build being deployed.

    Attrs:
        workspace: The build workspace, None if the build has none.
    """

    @property
    def workspace(self) -> typing.Optional[Path]:
        """The build workspace."""

    def get_environment(self, listener: Listener) -> typing.Mapping[str, str]:
        """Get the build environment variables.

        Args:
            listener: The build log.
        """


class CommandData(typing.Protocol):
    """Inputs of one deployment, provided by the build host.

    Attrs:
        build: The build being deployed.
        listener: The build log.
        file_path: Comma separated glob patterns of the files to deploy.
        publishing_profile: The publishing profile of the target Web App.
        source_directory: Workspace sub directory the patterns are relative to.
        target_directory: Directory of the deployed repository the files are placed in.
    """

    @property
    def build(self) -> Build:
        """The build being deployed."""

    @property
    def listener(self) -> Listener:
        """The build log."""

    @property
    def file_path(self) -> str:
        """The glob specification of the files to deploy."""

    @property
    def publishing_profile(self) -> typing.Optional[PublishingProfile]:
        """The publishing profile of the target Web App."""

    @property
    def source_directory(self) -> str:
        """Workspace sub directory the patterns are relative to."""

    @property
    def target_directory(self) -> str:
        """Directory of the deployed repository the files are placed in."""


@dataclasses.dataclass(frozen=True)
class GitDeployCommandData:
    """Plain CommandData implementation for hosts without their own.

    Attributes:
        build: The build being deployed.
        listener: The build log.
        file_path: Comma separated glob patterns of the files to deploy.
        publishing_profile: The publishing profile of the target Web App.
        source_directory: Workspace sub directory the patterns are relative to.
        target_directory: Directory of the deployed repository the files are placed in.
    """

    build: Build
    listener: Listener
    file_path: str
    publishing_profile: typing.Optional[PublishingProfile]
    source_directory: str = ""
    target_directory: str = ""


@dataclasses.dataclass(frozen=True)
class DeploymentResult:
    """Outcome of one deployment.

    Attributes:
        success: Whether the files were deployed.
        error_kind: The kind of failure, if any.
        message: Explanation of the failure, if any.
    """

    success: bool
    error_kind: typing.Optional[ErrorKind] = None
    message: str = ""

    @classmethod
    def succeeded(cls) -> "DeploymentResult":
        """Instantiate a successful result.

        Returns:
            The successful result.
        """
        return cls(success=True)

    @classmethod
    def failed(cls, error: DeployError) -> "DeploymentResult":
        """Instantiate a failed result from the error that ended the deployment.

        Args:
            error: The deployment error.

        Returns:
            The failed result.
        """
        return cls(success=False, error_kind=error.kind, message=error.msg)
