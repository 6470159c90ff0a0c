# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""App Service publishing profile and the Git deployment target derived from it."""

import base64
import dataclasses
import logging
import typing
import urllib.parse
from xml.etree import ElementTree

from pydantic import BaseModel, ConfigDict, Field, field_validator

from exceptions import MissingCredentialsError

logger = logging.getLogger(__name__)

MSDEPLOY_PUBLISH_METHOD = "MSDeploy"
FTP_PUBLISH_METHOD = "FTP"


class PublishingProfile(BaseModel):
    """Credentials bundle issued by App Service to deploy a Web App.

    Attributes:
        git_url: The Git deployment endpoint, None if the app cannot be deployed with Git.
        username: The deployment user name, e.g. "$my-app".
        password: The deployment password.
        ftp_url: The FTP deployment endpoint, if any.
        default_host_name: The host name the app is served at, if known.
    """

    model_config = ConfigDict(frozen=True)

    git_url: typing.Optional[str] = None
    username: str = ""
    password: str = Field(default="", repr=False)
    ftp_url: typing.Optional[str] = None
    default_host_name: typing.Optional[str] = None

    @field_validator("git_url", "ftp_url", "default_host_name")
    @classmethod
    def empty_as_none(cls, value: typing.Optional[str]) -> typing.Optional[str]:
        """Treat blank endpoints as missing.

        Args:
            value: The endpoint value.

        Returns:
            The stripped value, None if blank.
        """
        if value is None:
            return None
        return value.strip() or None

    @classmethod
    def from_publish_settings(
        cls, publish_settings: typing.Union[str, bytes]
    ) -> "PublishingProfile":
        """Instantiate the profile from a .PublishSettings document.

        The Git endpoint lives on the same SCM host as the Web Deploy (MSDeploy) endpoint and
        shares its credentials.

        Args:
            publish_settings: The publishing profile XML returned by App Service.

        Raises:
            MissingCredentialsError: if the document cannot be parsed.

        Returns:
            The publishing profile.
        """
        try:
            # The document comes from the authenticated App Service management API.
            root = ElementTree.fromstring(publish_settings)  # nosec B314
        except ElementTree.ParseError as exc:
            raise MissingCredentialsError(f"Invalid publishing profile document, {exc}") from exc

        profiles = {
            element.get("publishMethod"): element for element in root.iter("publishProfile")
        }
        msdeploy = profiles.get(MSDEPLOY_PUBLISH_METHOD)
        ftp = profiles.get(FTP_PUBLISH_METHOD)
        credentials_source = msdeploy if msdeploy is not None else ftp

        git_url = None
        if msdeploy is not None and msdeploy.get("publishUrl") and msdeploy.get("msdeploySite"):
            git_url = f"https://{msdeploy.get('publishUrl')}/{msdeploy.get('msdeploySite')}.git"

        default_host_name = None
        if credentials_source is not None and credentials_source.get("destinationAppUrl"):
            default_host_name = urllib.parse.urlparse(
                credentials_source.get("destinationAppUrl", "")
            ).hostname

        username = password = ""
        if credentials_source is not None:
            username = credentials_source.get("userName", "")
            password = credentials_source.get("userPWD", "")

        return cls(
            git_url=git_url,
            username=username,
            password=password,
            ftp_url=ftp.get("publishUrl") if ftp is not None else None,
            default_host_name=default_host_name,
        )


@dataclasses.dataclass(frozen=True)
class Credentials:
    """Basic authentication credentials for the deployment remote.

    Attributes:
        username: The deployment user name.
        password: The deployment password.
    """

    username: str
    password: str = dataclasses.field(repr=False)


@dataclasses.dataclass(frozen=True)
class DeploymentTarget:
    """The Git remote a Web App is deployed to.

    Attributes:
        url: The Git remote URL.
        credentials: The basic authentication credentials for the remote.
        redacted_url: The remote URL without any user information, safe to log.
    """

    url: str
    credentials: Credentials

    @classmethod
    def from_publishing_profile(
        cls, profile: typing.Optional[PublishingProfile]
    ) -> "DeploymentTarget":
        """Instantiate the target from a publishing profile.

        Args:
            profile: The publishing profile of the Web App.

        Raises:
            MissingCredentialsError: if the profile has no Git endpoint or no credentials.

        Returns:
            The deployment target.
        """
        if profile is None:
            raise MissingCredentialsError("No publishing profile given.")
        if not profile.git_url:
            raise MissingCredentialsError(
                "The publishing profile has no Git deployment endpoint. "
                "Make sure Git deployment is enabled for the Web App."
            )
        if not profile.username or not profile.password:
            raise MissingCredentialsError("The publishing profile has no deployment credentials.")
        return cls(
            url=profile.git_url,
            credentials=Credentials(username=profile.username, password=profile.password),
        )

    @property
    def redacted_url(self) -> str:
        """Get the remote URL without user information.

        Returns:
            The URL with any user name and password removed.
        """
        parsed = urllib.parse.urlsplit(self.url)
        if not parsed.netloc or "@" not in parsed.netloc:
            return self.url
        return urllib.parse.urlunsplit(parsed._replace(netloc=parsed.netloc.rsplit("@", 1)[1]))

    def basic_auth_header(self) -> str:
        """Build the HTTP basic authorization header for the remote.

        Returns:
            The header line, e.g. "Authorization: Basic ...".
        """
        token = base64.b64encode(
            f"{self.credentials.username}:{self.credentials.password}".encode("utf-8")
        ).decode("ascii")
        return f"Authorization: Basic {token}"
