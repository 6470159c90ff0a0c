# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Helper functions for App Service Git deploy integration tests."""

import logging
import shutil
import typing
from pathlib import Path

from azure.mgmt.web import WebSiteManagementClient
from azure.mgmt.web.models import (
    AppServicePlan,
    CsmPublishingCredentialsPoliciesEntity,
    CsmPublishingProfileOptions,
    Site,
    SiteConfig,
    SiteConfigResource,
    SkuDescription,
)

from publishing import PublishingProfile

from .constants import RESOURCES_PATH
from .types_ import AppServiceEnvironment

logger = logging.getLogger(__name__)


def create_app_service_plan(
    web_client: WebSiteManagementClient, test_env: AppServiceEnvironment
) -> AppServicePlan:
    """Create the App Service plan of the test.

    Args:
        web_client: The App Service management client.
        test_env: The test resource names and settings.

    Returns:
        The App Service plan.
    """
    logger.info("Creating App Service plan %s", test_env.app_service_plan)
    return web_client.app_service_plans.begin_create_or_update(
        test_env.resource_group,
        test_env.app_service_plan,
        AppServicePlan(
            location=test_env.location, sku=SkuDescription(name=test_env.pricing_tier)
        ),
    ).result()


def create_web_app(
    web_client: WebSiteManagementClient,
    test_env: AppServiceEnvironment,
    plan: AppServicePlan,
    site_config: typing.Optional[SiteConfig] = None,
) -> Site:
    """Create a Web App deployable with Local Git.

    Args:
        web_client: The App Service management client.
        test_env: The test resource names and settings.
        plan: The App Service plan to host the Web App.
        site_config: The runtime stack configuration of the Web App.

    Returns:
        The Web App.
    """
    logger.info("Creating Web App %s", test_env.app_service)
    web_app = web_client.web_apps.begin_create_or_update(
        test_env.resource_group,
        test_env.app_service,
        Site(location=test_env.location, server_farm_id=plan.id, site_config=site_config),
    ).result()
    # Git deployments authenticate with the publishing credentials.
    web_client.web_apps.update_scm_allowed(
        test_env.resource_group,
        test_env.app_service,
        CsmPublishingCredentialsPoliciesEntity(allow=True),
    )
    web_client.web_apps.update_configuration(
        test_env.resource_group, test_env.app_service, SiteConfigResource(scm_type="LocalGit")
    )
    return web_app


def get_publishing_profile(
    web_client: WebSiteManagementClient, test_env: AppServiceEnvironment
) -> PublishingProfile:
    """Get the publishing profile of the Web App.

    Args:
        web_client: The App Service management client.
        test_env: The test resource names and settings.

    Returns:
        The publishing profile.
    """
    publish_settings = b"".join(
        web_client.web_apps.list_publishing_profile_xml_with_secrets(
            test_env.resource_group,
            test_env.app_service,
            CsmPublishingProfileOptions(format="WebDeploy"),
        )
    )
    return PublishingProfile.from_publish_settings(publish_settings)


def extract_sample_app(sample_app: str, file_names: typing.Iterable[str], workspace: Path):
    """Copy files of a sample application into the workspace.

    Args:
        sample_app: The sample application directory name under the test resources.
        file_names: The files to copy.
        workspace: The build workspace.
    """
    for file_name in file_names:
        shutil.copyfile(RESOURCES_PATH / sample_app / file_name, workspace / file_name)
