# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Exceptions raised while deploying to App Service."""

import enum


class ErrorKind(str, enum.Enum):
    """Kinds of deployment failures reported back to the build.

    Attributes:
        INVALID_GLOB_SPEC: The file glob specification is empty or malformed.
        NO_FILES_MATCHED: The file glob specification matched no file in the workspace.
        MISSING_WORKSPACE: The build has no workspace to deploy from.
        MISSING_CREDENTIALS: The publishing profile has no Git deployment endpoint.
        INVALID_CONFIG: The deployment configuration in the build environment is invalid.
        STAGING_FAILED: The files could not be committed to the scratch repository.
        DEPLOY_PUSH_FAILED: The Git push to the App Service remote failed.
        READINESS_TIMEOUT: The deployed application did not become ready in time.
        CANCELLED: The deployment was cancelled or ran past its deadline.
    """

    INVALID_GLOB_SPEC = "InvalidGlobSpec"
    NO_FILES_MATCHED = "NoFilesMatched"
    MISSING_WORKSPACE = "MissingWorkspace"
    MISSING_CREDENTIALS = "MissingCredentials"
    INVALID_CONFIG = "InvalidConfig"
    STAGING_FAILED = "StagingFailed"
    DEPLOY_PUSH_FAILED = "DeployPushFailed"
    READINESS_TIMEOUT = "ReadinessTimeout"
    CANCELLED = "Cancelled"


class DeployError(Exception):
    """Base exception for deployment errors.

    Attributes:
        kind: The kind of failure.
        msg: Explanation of the error.
    """

    kind: ErrorKind

    def __init__(self, msg: str):
        """Initialize a new instance of the DeployError exception.

        Args:
            msg: Explanation of the error.
        """
        super().__init__(msg)
        self.msg = msg


class InvalidGlobSpecError(DeployError):
    """The file glob specification is invalid."""

    kind = ErrorKind.INVALID_GLOB_SPEC


class NoFilesMatchedError(DeployError):
    """No file in the workspace matched the glob specification."""

    kind = ErrorKind.NO_FILES_MATCHED


class MissingWorkspaceError(DeployError):
    """The build does not have a workspace."""

    kind = ErrorKind.MISSING_WORKSPACE


class MissingCredentialsError(DeployError):
    """The publishing profile does not carry Git deployment credentials."""

    kind = ErrorKind.MISSING_CREDENTIALS


class InvalidConfigError(DeployError):
    """The deployment configuration is invalid."""

    kind = ErrorKind.INVALID_CONFIG


class StagingFailedError(DeployError):
    """The matched files could not be committed for deployment."""

    kind = ErrorKind.STAGING_FAILED


class DeployPushFailedError(DeployError):
    """The push to the deployment remote failed.

    Attributes:
        stderr: Output of the failed git push.
    """

    kind = ErrorKind.DEPLOY_PUSH_FAILED

    def __init__(self, msg: str, stderr: str = ""):
        """Initialize a new instance of the DeployPushFailedError exception.

        Args:
            msg: Explanation of the error.
            stderr: Output of the failed git push.
        """
        super().__init__(msg)
        self.stderr = stderr


class CancelledError(DeployError):
    """Execution was cancelled or its deadline passed."""

    kind = ErrorKind.CANCELLED


class ReadinessTimeoutError(DeployError):
    """The application did not serve the expected content within the timeout."""

    kind = ErrorKind.READINESS_TIMEOUT
