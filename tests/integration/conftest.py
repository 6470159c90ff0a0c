# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Fixtures for App Service Git deploy integration tests."""

import logging
import os
import secrets
import typing
from pathlib import Path

import pytest
from azure.identity import DefaultAzureCredential
from azure.mgmt.resource import ResourceManagementClient
from azure.mgmt.web import WebSiteManagementClient
from azure.mgmt.web.models import AppServicePlan
from pytest import FixtureRequest

from types_ import StreamListener

from .constants import BUILD_TAG, RESOURCE_PREFIX
from .helpers import create_app_service_plan
from .types_ import AppServiceEnvironment, AzureClients, Build

logger = logging.getLogger(__name__)


@pytest.fixture(scope="module", name="azure_clients")
def azure_clients_fixture() -> AzureClients:
    """Azure management clients of the test subscription."""
    subscription_id = os.environ["AZURE_SUBSCRIPTION_ID"]
    credential = DefaultAzureCredential()
    return AzureClients(
        subscription_id=subscription_id,
        resource=ResourceManagementClient(credential, subscription_id),
        web=WebSiteManagementClient(credential, subscription_id),
    )


@pytest.fixture(scope="function", name="app_service_env")
def app_service_env_fixture(request: FixtureRequest) -> AppServiceEnvironment:
    """Unique resource names for the test."""
    suffix = secrets.token_hex(4)
    return AppServiceEnvironment(
        resource_group=f"{RESOURCE_PREFIX}-rg-{suffix}",
        location=request.config.getoption("--azure-location"),
        app_service_plan=f"{RESOURCE_PREFIX}-plan-{suffix}",
        pricing_tier=request.config.getoption("--app-service-pricing-tier"),
        app_service=f"{RESOURCE_PREFIX}-app-{suffix}",
    )


@pytest.fixture(scope="function", name="resource_group")
def resource_group_fixture(
    azure_clients: AzureClients, app_service_env: AppServiceEnvironment
) -> typing.Iterator[str]:
    """Resource group of the test, deleted with everything in it after the test."""
    azure_clients.resource.resource_groups.create_or_update(
        app_service_env.resource_group, {"location": app_service_env.location}
    )
    yield app_service_env.resource_group
    logger.info("Deleting resource group %s", app_service_env.resource_group)
    azure_clients.resource.resource_groups.begin_delete(app_service_env.resource_group).result()


@pytest.fixture(scope="function", name="app_service_plan")
def app_service_plan_fixture(
    azure_clients: AzureClients, app_service_env: AppServiceEnvironment, resource_group: str
) -> AppServicePlan:
    """App Service plan of the test."""
    assert resource_group
    plan = create_app_service_plan(azure_clients.web, app_service_env)
    assert plan
    return plan


@pytest.fixture(scope="function", name="workspace")
def workspace_fixture(tmp_path: Path) -> Path:
    """Empty build workspace."""
    workspace = tmp_path / "workspace"
    workspace.mkdir()
    return workspace


@pytest.fixture(scope="function", name="build")
def build_fixture(workspace: Path) -> Build:
    """Build of the sample application."""
    return Build(workspace=workspace, environment={"BUILD_TAG": BUILD_TAG})


@pytest.fixture(scope="function", name="listener")
def listener_fixture() -> StreamListener:
    """Build log written to standard output."""
    return StreamListener()
