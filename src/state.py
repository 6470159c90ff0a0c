# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Deployment configuration read from the build environment."""

import logging
import typing

from pydantic import BaseModel, Field, ValidationError, field_validator

from exceptions import InvalidConfigError

logger = logging.getLogger(__name__)

BUILD_TAG_ENV_NAME = "BUILD_TAG"
BRANCH_ENV_NAME = "APP_SERVICE_GIT_BRANCH"
GIT_TIMEOUT_ENV_NAME = "APP_SERVICE_GIT_TIMEOUT"
AUTHOR_NAME_ENV_NAME = "APP_SERVICE_GIT_AUTHOR_NAME"
AUTHOR_EMAIL_ENV_NAME = "APP_SERVICE_GIT_AUTHOR_EMAIL"
# App Service deploys whatever is pushed to the master branch of its Git endpoint.
DEFAULT_BRANCH = "master"
DEFAULT_GIT_TIMEOUT = 600
DEFAULT_AUTHOR_NAME = "Jenkins"
DEFAULT_AUTHOR_EMAIL = "jenkins@localhost"


class DeployConfig(BaseModel):
    """Configuration of a Git deployment.

    Attributes:
        build_tag: Identifier of the build, embedded in the commit message.
        branch: The remote branch to push to.
        git_timeout: Time in seconds a single git command may run for.
        author_name: The commit author name.
        author_email: The commit author email.
        commit_message: The message of the deployment commit.
    """

    build_tag: str = Field("unknown", min_length=1)
    branch: str = Field(DEFAULT_BRANCH, min_length=1)
    git_timeout: int = Field(DEFAULT_GIT_TIMEOUT, gt=0)
    author_name: str = Field(DEFAULT_AUTHOR_NAME, min_length=1)
    author_email: str = Field(DEFAULT_AUTHOR_EMAIL, min_length=1)

    @field_validator("branch")
    @classmethod
    def valid_branch(cls, value: str) -> str:
        """Validate the branch is a plain branch name.

        Args:
            value: The branch name.

        Raises:
            ValueError: if the branch name contains whitespace or starts with a dash.

        Returns:
            The branch name without a refs/heads/ prefix.
        """
        value = value.removeprefix("refs/heads/")
        if not value or value.startswith("-") or any(char.isspace() for char in value):
            raise ValueError(f"Invalid branch name {value!r}.")
        return value

    @property
    def commit_message(self) -> str:
        """Get the deployment commit message.

        Returns:
            The commit message naming the deployed build.
        """
        return f"Deploy {self.build_tag}"

    @classmethod
    def from_environment(cls, environment: typing.Mapping[str, str]) -> "DeployConfig":
        """Instantiate the configuration from build environment variables.

        Args:
            environment: The build environment.

        Raises:
            InvalidConfigError: if the environment holds invalid values.

        Returns:
            The deployment configuration.
        """
        values = {
            field: environment[name]
            for field, name in (
                ("build_tag", BUILD_TAG_ENV_NAME),
                ("branch", BRANCH_ENV_NAME),
                ("git_timeout", GIT_TIMEOUT_ENV_NAME),
                ("author_name", AUTHOR_NAME_ENV_NAME),
                ("author_email", AUTHOR_EMAIL_ENV_NAME),
            )
            if environment.get(name)
        }
        try:
            return cls(**values)
        except ValidationError as exc:
            logger.error("Invalid deployment configuration, %s", exc)
            raise InvalidConfigError(f"Invalid deployment configuration: {exc}") from exc
